"""SQLAlchemy ORM models for RecipeHub.

Tables:
- recipes: Core recipe data, optionally owned by an authenticated user
- ingredients / steps / recipe_images: Dependent rows, cascade-deleted with their recipe
- tags / tag_translations: Tag catalogue with per-language names
- recipe_tags: Many-to-many association between recipes and tags
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Text,
    Integer,
    Boolean,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func, true

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Recipe(Base):
    """Core recipe. Dependents are removed by the database's ON DELETE CASCADE."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_owner_id", "owner_id"),
        Index("ix_recipes_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    prep_time: Mapped[int] = mapped_column(Integer, nullable=False)
    servings: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False)
    calories: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    main_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships (read side only; writes go through the store row by row)
    ingredients: Mapped[list["Ingredient"]] = relationship(
        "Ingredient", back_populates="recipe", passive_deletes=True
    )
    steps: Mapped[list["Step"]] = relationship(
        "Step", back_populates="recipe", passive_deletes=True
    )
    images: Mapped[list["RecipeImage"]] = relationship(
        "RecipeImage", back_populates="recipe", passive_deletes=True
    )
    recipe_tags: Mapped[list["RecipeTag"]] = relationship(
        "RecipeTag", back_populates="recipe", passive_deletes=True
    )


class Ingredient(Base):
    __tablename__ = "ingredients"
    __table_args__ = (
        Index("ix_ingredients_recipe_id", "recipe_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order: Mapped[Optional[int]] = mapped_column("order", Integer, nullable=True)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")


class Step(Base):
    """Ordered cooking step; step_number is the only ordering key."""
    __tablename__ = "steps"
    __table_args__ = (
        Index("ix_steps_recipe_id", "recipe_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    step_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tip: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="steps")


class RecipeImage(Base):
    __tablename__ = "recipe_images"
    __table_args__ = (
        Index("ix_recipe_images_recipe_id", "recipe_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    alt_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="images")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    translations: Mapped[list["TagTranslation"]] = relationship(
        "TagTranslation", back_populates="tag", passive_deletes=True
    )


class TagTranslation(Base):
    __tablename__ = "tag_translations"

    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    language_code: Mapped[str] = mapped_column(String(10), primary_key=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False)

    tag: Mapped["Tag"] = relationship("Tag", back_populates="translations")


class RecipeTag(Base):
    """Association row; lives and dies with its recipe."""
    __tablename__ = "recipe_tags"

    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="recipe_tags")
    tag: Mapped["Tag"] = relationship("Tag")
