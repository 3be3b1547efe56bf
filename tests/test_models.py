import pytest
from pydantic import ValidationError

from recipe_catalog.errors import NotFound, RemoteError, Unauthenticated
from recipe_catalog.models.dto import Notice
from recipe_catalog.models.recipe_schema import FilterCriteria, RecipeForm


def _form(**extra):
    data = {"title": "  Soup ", "instructions": "Simmer.", **extra}
    return RecipeForm.model_validate(data)


def test_form_defaults_and_cleanup():
    form = _form(description="  ", dietary_restrictions=["Vegan", " Vegan ", "", "Keto"])

    assert form.title == "Soup"
    assert form.description is None
    assert form.servings == 4
    assert form.dietary_restrictions == ["Vegan", "Keto"]
    assert form.ingredients == []


@pytest.mark.parametrize(
    "extra",
    [
        {"title": "   "},
        {"prep_time": -1},
        {"servings": 0},
        {"difficulty": "extreme"},
        {"ingredients": [{"name": "Salt", "amount": 1, "unit": " "}]},
        {"ingredients": [{"name": "", "amount": 1, "unit": "pinch"}]},
    ],
)
def test_form_rejects_bad_values(extra):
    with pytest.raises(ValidationError):
        _form(**extra)


def test_recipe_fields_are_store_ready():
    fields = _form(difficulty="hard").recipe_fields()

    assert fields["difficulty"] == "hard"
    assert "ingredients" not in fields


def test_filter_criteria_unset_fields():
    assert not FilterCriteria().is_active()
    assert not FilterCriteria.coerce({"difficulty": "", "cuisine_type": "", "dietary_restrictions": ["  "]}).is_active()
    assert FilterCriteria.coerce({"dietary_restrictions": ["Vegan"]}).is_active()
    criteria = FilterCriteria(difficulty="easy")
    assert FilterCriteria.coerce(criteria) is criteria


def test_error_notices_stay_longer():
    assert Notice.error("x").duration_ms > Notice.info("x").duration_ms
    assert Notice.for_error(Unauthenticated()).title == "Sign In Required"
    assert Notice.for_error(NotFound(record_id="r1")).message == "No record with id r1"
    assert Notice.for_error(RemoteError("down")).to_dict()["kind"] == "error"
