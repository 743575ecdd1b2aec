"""
Recipe and ingredient models.
"""

from sqlalchemy import (
    Column,
    Text,
    String,
    Integer,
    Numeric,
    Boolean,
    DateTime,
    ForeignKey,
    Uuid,
    JSON,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow
from domain.enums import RecipeSource


class Ingredient(Base):
    """Ingredient master table; names are stored normalized"""

    __tablename__ = "ingredients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False, index=True)
    category = Column(String(50), nullable=False, default="produce")
    default_unit = Column(String(20))
    created_at = Column(DateTime, nullable=False, default=utcnow)

    recipe_links = relationship("RecipeIngredient", back_populates="ingredient")


class Recipe(Base):
    """Trainer-owned recipe with per-serving nutrition"""

    __tablename__ = "recipes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text)
    instructions = Column(Text, nullable=False, default="")
    meal_types = Column(JSON, nullable=False, default=list)
    dietary_tags = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    prep_time_minutes = Column(Integer, nullable=False, default=0)
    cook_time_minutes = Column(Integer, nullable=False, default=0)
    servings = Column(Integer, nullable=False, default=1)
    calories_kcal = Column(Integer, nullable=False, default=0)
    protein_grams = Column(Numeric(6, 2), nullable=False, default=0)
    carbs_grams = Column(Numeric(6, 2), nullable=False, default=0)
    fat_grams = Column(Numeric(6, 2), nullable=False, default=0)
    image_url = Column(String(500))
    is_public = Column(Boolean, nullable=False, default=False)
    is_approved = Column(Boolean, nullable=False, default=False, index=True)
    source = Column(SQLEnum(RecipeSource, name="recipe_source"), nullable=False, default=RecipeSource.MANUAL)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    trainer = relationship("User", back_populates="recipes")
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )

    def __repr__(self):
        return f"<Recipe(id={self.id}, name={self.name})>"


class RecipeIngredient(Base):
    """Quantity and unit of one ingredient in a recipe"""

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(
        Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True
    )
    ingredient_id = Column(
        Uuid, ForeignKey("ingredients.id", ondelete="RESTRICT"), primary_key=True
    )
    quantity = Column(Numeric(10, 3), nullable=False, default=0)
    unit = Column(String(20))
    position = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_links", lazy="joined")
