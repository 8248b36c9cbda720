"""
Input Validation Tests for API request schemas.

Target: 100% coverage on api/schemas.py validation
"""

import pytest
from pydantic import ValidationError


class TestFilingTypeRequest:
    def test_valid_types(self):
        from api.schemas import FilingTypeRequest

        assert FilingTypeRequest(filing_type="patent").filing_type == "patent"
        assert FilingTypeRequest(filing_type="trademark").filing_type == "trademark"

    def test_unset_not_selectable(self):
        from api.schemas import FilingTypeRequest

        with pytest.raises(ValidationError):
            FilingTypeRequest(filing_type="unset")


class TestClaimCreate:
    def test_defaults_to_independent(self):
        from api.schemas import ClaimCreate

        claim = ClaimCreate(text="A controller.")
        assert claim.kind == "independent"
        assert claim.parent_id is None

    def test_text_required(self):
        from api.schemas import ClaimCreate

        with pytest.raises(ValidationError):
            ClaimCreate(text="")

    def test_kind_validated(self):
        from api.schemas import ClaimCreate

        with pytest.raises(ValidationError):
            ClaimCreate(text="A controller.", kind="method")


class TestGoodsServiceCreate:
    @pytest.mark.parametrize("nice_class", [0, 46])
    def test_nice_class_range(self, nice_class):
        from api.schemas import GoodsServiceCreate

        with pytest.raises(ValidationError):
            GoodsServiceCreate(description="Soft drinks", nice_class=nice_class)

    def test_valid(self):
        from api.schemas import GoodsServiceCreate

        item = GoodsServiceCreate(description="Soft drinks", nice_class=32)
        assert item.nice_class == 32


class TestSuggestionRequest:
    def test_target_field_validated(self):
        from api.schemas import SuggestionRequest

        with pytest.raises(ValidationError):
            SuggestionRequest(target_field="title")

    def test_instructions_length(self):
        from api.schemas import SuggestionRequest

        with pytest.raises(ValidationError):
            SuggestionRequest(target_field="improvementSuggestions", instructions="x" * 2001)


class TestSaveRequest:
    def test_owner_pattern(self):
        from api.schemas import SaveRequest

        assert SaveRequest(owner_id="user_42").owner_id == "user_42"
        with pytest.raises(ValidationError):
            SaveRequest(owner_id="user 42")


class TestModelConfigUpdate:
    def test_temperature_range(self):
        from api.schemas import ModelConfigUpdate

        with pytest.raises(ValidationError):
            ModelConfigUpdate(temperature=3.0)
        assert ModelConfigUpdate(suggestion="gemini-2.5-pro").suggestion == "gemini-2.5-pro"
