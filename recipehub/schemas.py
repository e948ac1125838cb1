"""Pydantic request schemas for RecipeHub API.

Bodies accept both camelCase (``prepTime``) and snake_case (``prep_time``)
field names. Required fields and domain ranges are checked by the write
workflow; pydantic rejects values of the wrong type and values that do not
fit their database column (string lengths, 32-bit integers).
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Column limits, see models.py
MAX_INT = 2**31 - 1
MIN_INT = -(2**31)
NAME_LENGTH = 200
SHORT_TEXT_LENGTH = 50


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- Dependents ---

class IngredientIn(_Payload):
    name: Optional[str] = Field(None, max_length=NAME_LENGTH)
    quantity: Optional[Union[str, int, float]] = None
    unit: Optional[str] = Field(None, max_length=SHORT_TEXT_LENGTH)
    optional: bool = False
    order: Optional[int] = Field(None, ge=MIN_INT, le=MAX_INT)

    @field_validator("quantity")
    @classmethod
    def _quantity_fits(cls, value):
        # Stored as text whatever the JSON type
        if value is not None and len(str(value)) > SHORT_TEXT_LENGTH:
            raise ValueError(f"quantity must be at most {SHORT_TEXT_LENGTH} characters")
        return value


class StepIn(_Payload):
    step_number: Optional[int] = Field(None, alias="stepNumber", ge=MIN_INT, le=MAX_INT)
    description: Optional[str] = None
    tip: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")


class ImageIn(_Payload):
    url: Optional[str] = None
    alt_text: Optional[str] = Field(None, alias="altText")


class TagRef(_Payload):
    id: Optional[int] = Field(None, ge=MIN_INT, le=MAX_INT)


# --- Recipe ---

class RecipeCreate(_Payload):
    name: Optional[str] = Field(None, max_length=NAME_LENGTH)
    description: Optional[str] = None
    prep_time: Optional[int] = Field(None, alias="prepTime", le=MAX_INT)
    servings: Optional[int] = Field(None, le=MAX_INT)
    difficulty: Optional[int] = None
    calories: Optional[int] = Field(None, le=MAX_INT)
    main_image_url: Optional[str] = Field(None, alias="mainImageUrl")
    is_public: Optional[bool] = Field(None, alias="isPublic")
    ingredients: Optional[list[IngredientIn]] = None
    steps: Optional[list[StepIn]] = None
    images: Optional[list[ImageIn]] = None
    tags: Optional[list[TagRef]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _bare_tag_ids(cls, value):
        # Accept [1, 2] as shorthand for [{"id": 1}, {"id": 2}]
        if isinstance(value, list):
            return [{"id": item} if isinstance(item, int) else item for item in value]
        return value


class RecipeUpdate(RecipeCreate):
    """Partial update: only fields present in the body are applied.

    Collections present as a list replace the stored collection wholesale.
    """
