"""
Database Schemas for the Layo Investment store

Each Pydantic model represents a collection in MongoDB.
Collection name is the lowercase class name.
Fields are camelCase on the wire and in storage.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, WithJsonSchema
from pydantic.alias_generators import to_camel


def to_object_id(v):
    if isinstance(v, ObjectId):
        return v
    if isinstance(v, str) and ObjectId.is_valid(v):
        return ObjectId(v)
    raise ValueError(f'Cast to ObjectId failed for value "{v}"')


PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(to_object_id),
    WithJsonSchema({"type": "string", "pattern": "^[0-9a-fA-F]{24}$"}),
]


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        allow_inf_nan=False,
        arbitrary_types_allowed=True,
    )


class Product(Document):
    name: str = Field(..., min_length=1, description="Product name")
    price: Union[int, float] = Field(..., description="Price")
    description: str = Field(..., min_length=1, description="Product description")
    category: str = Field(..., min_length=1, description="Product category")
    media: str = Field("", description="Relative URL of the uploaded media, empty when none")
    media_type: Optional[Literal["image", "video"]] = Field(None, description="image or video")


class OrderIn(Document):
    customer_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    pickup_location: str = Field(..., min_length=1)
    quantity: Union[int, float]
    # Only the id format is checked; the product may not exist.
    product_id: PyObjectId


class Order(OrderIn):
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Seller(Document):
    username: str = Field(..., min_length=1, description="Unique seller login")
    password: str = Field(..., description="bcrypt hash, never plain text")
