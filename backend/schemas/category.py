from pydantic import BaseModel, ConfigDict, Field

class CategoryIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(alias="nama", min_length=1)

class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str = Field(alias="nama")

class CategoryMutation(BaseModel):
    message: str
    category: CategoryOut
