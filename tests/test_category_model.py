"""Tests for Category validation and default categories."""

import pytest

from supertodo.errors import ValidationError
from supertodo.models.category import Category, default_categories, name_key, validate_category


class TestCategoryModel:

    def test_create_trims_and_defaults(self, id_factory):
        category = Category.create({"name": "  Errands ", "description": None}, id_factory=id_factory)

        assert category.id == "id-1"
        assert category.name == "Errands"
        assert category.description == ""

    def test_round_trip_preserves_every_field(self):
        category = Category.create({"name": "Errands", "description": "Things to pick up"})

        rebuilt = Category.create(category.to_record())

        assert rebuilt == category
        assert rebuilt.to_record() == {"id": category.id, "name": "Errands", "description": "Things to pick up"}

    @pytest.mark.parametrize("data", [{}, {"name": ""}, {"name": None}, {"name": ["Work"]}])
    def test_name_required(self, data):
        with pytest.raises(ValidationError, match="Category name is required"):
            Category.create(data)

    def test_whitespace_name_is_empty(self):
        with pytest.raises(ValidationError, match="Category name cannot be empty"):
            Category.create({"name": " \t "})

    def test_name_length_bound(self):
        assert Category.create({"name": "n" * 50}).name == "n" * 50

        with pytest.raises(ValidationError, match="between 1 and 50 characters"):
            Category.create({"name": "n" * 51})

    def test_description_length_bound(self):
        with pytest.raises(ValidationError, match="200 characters or less"):
            validate_category({"name": "Work", "description": "d" * 201})

    def test_name_key_ignores_case_and_padding(self):
        assert name_key(" Finance ") == name_key("FINANCE")


class TestDefaultCategories:

    def test_default_names_in_order(self):
        assert [c.name for c in default_categories()] == ["Work", "Personal", "Shopping", "Health"]

    def test_defaults_have_descriptions_and_ids(self, id_factory):
        categories = default_categories(id_factory)

        assert [c.id for c in categories] == ["id-1", "id-2", "id-3", "id-4"]
        assert all(c.description for c in categories)
