"""
Tests for the step validator.
"""

import pytest

import core.config as config
from filing.records import FilingType, empty_record, merge_record
from filing.steps import (
    StepStatus,
    can_advance,
    record_completeness,
    step_count,
    step_name,
)


def patent(**fields):
    return merge_record(empty_record(FilingType.PATENT), fields)


def trademark(**fields):
    return merge_record(empty_record(FilingType.TRADEMARK), fields)


class TestStepCount:
    def test_patent_has_four_steps(self):
        assert step_count(FilingType.PATENT) == 4
        assert step_name(FilingType.PATENT, 4) == "Claims"

    def test_trademark_has_three_steps(self):
        assert step_count(FilingType.TRADEMARK) == 3
        assert step_name(FilingType.TRADEMARK, 2) == "Goods & Services"

    def test_unset_has_no_steps(self):
        assert step_count(FilingType.UNSET) == 0
        assert step_name(FilingType.UNSET, 1) is None


class TestPatentSteps:
    """Required answers per patent step."""

    def test_empty_basic_info(self):
        """Every basic-info answer is reported missing, in order."""
        check = can_advance("patent", 1, {})
        assert check.is_valid is False
        assert check.status == StepStatus.INCOMPLETE
        assert check.missing_fields == ["title", "inventorNames", "inventionType", "briefSummary"]
        assert check.errors["title"] == "Invention title is required"

    def test_complete_basic_info(self, patent_basic_info):
        check = can_advance(FilingType.PATENT, 1, patent_basic_info)
        assert check.is_valid
        assert check.missing_fields == []

    def test_blank_text_counts_as_missing(self, patent_basic_info):
        record = {**patent_basic_info, "title": "   "}
        check = can_advance(FilingType.PATENT, 1, record)
        assert check.missing_fields == ["title"]

    def test_description_step(self, patent_description):
        check = can_advance(FilingType.PATENT, 2, {"technicalField": "Irrigation"})
        assert check.missing_fields == ["backgroundArt", "detailedDescription", "advantageousEffects"]
        assert can_advance(FilingType.PATENT, 2, patent_description).is_valid

    def test_prior_art_step_is_optional(self):
        assert can_advance(FilingType.PATENT, 3, patent()).is_valid

    def test_claims_step_needs_independent_claim(self):
        only_dependent = patent(claims=[{"id": "1", "text": "Of a claim.", "kind": "dependent"}])
        check = can_advance(FilingType.PATENT, 4, only_dependent)
        assert check.missing_fields == ["claims"]

        with_independent = patent(claims=[{"id": "1", "text": "A controller."}])
        assert can_advance(FilingType.PATENT, 4, with_independent).is_valid

    def test_other_steps_not_checked(self, patent_basic_info):
        """Only the asked-for step's answers matter."""
        check = can_advance(FilingType.PATENT, 1, patent_basic_info)
        assert "technicalField" not in check.missing_fields


class TestTrademarkSteps:
    def test_basic_info(self, trademark_basic_info):
        check = can_advance(FilingType.TRADEMARK, 1, {})
        assert check.missing_fields == ["applicantName", "markName", "filingBasis"]
        assert can_advance(FilingType.TRADEMARK, 1, trademark_basic_info).is_valid

    def test_empty_goods_services(self):
        record = trademark(goodsServices=[])
        check = can_advance(FilingType.TRADEMARK, 2, record)
        assert check.is_valid is False
        assert check.missing_fields == ["goodsServices"]

    def test_goods_services_present(self):
        record = trademark(goodsServices=[{"description": "Soft drinks", "niceClass": 32}])
        assert can_advance(FilingType.TRADEMARK, 2, record).is_valid

    def test_use_based_needs_proof_of_use(self):
        record = trademark(filingBasis="use")
        check = can_advance(FilingType.TRADEMARK, 3, record)
        assert check.missing_fields == ["firstUseDate", "specimenDescription"]

    def test_intent_to_use_needs_intended_use(self):
        record = trademark(filingBasis="intent")
        check = can_advance(FilingType.TRADEMARK, 3, record)
        assert check.missing_fields == ["intendedUseDescription"]

        record = trademark(filingBasis="intent", intendedUseDescription="Launching in 2027")
        assert can_advance(FilingType.TRADEMARK, 3, record).is_valid

    def test_intent_to_use_relaxation_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr(config, "INTENT_TO_USE_RELAXES_USAGE_EVIDENCE", False)
        record = trademark(filingBasis="intent", intendedUseDescription="Launching in 2027")
        check = can_advance(FilingType.TRADEMARK, 3, record)
        assert check.missing_fields == ["firstUseDate", "specimenDescription"]


class TestOutOfRange:
    """Steps outside the wizard are a contract problem, not missing data."""

    @pytest.mark.parametrize("step", [0, 5, -1])
    def test_patent_out_of_range(self, step):
        check = can_advance(FilingType.PATENT, step, {})
        assert check.status == StepStatus.OUT_OF_RANGE
        assert not check.is_valid

    def test_trademark_step_four_out_of_range(self):
        assert can_advance(FilingType.TRADEMARK, 4, {}).status == StepStatus.OUT_OF_RANGE

    def test_unset_type_out_of_range(self):
        assert can_advance(FilingType.UNSET, 1, None).status == StepStatus.OUT_OF_RANGE


class TestMalformedMappings:
    """Plain mappings that do not fit the record shape are reported, not raised."""

    def test_unknown_key(self):
        check = can_advance(FilingType.PATENT, 1, {"foo": "bar"})
        assert check.status == StepStatus.INCOMPLETE
        assert "foo" in check.missing_fields
        assert "Extra inputs" in check.errors["foo"]

    def test_unknown_key_beside_complete_answers(self, patent_basic_info):
        check = can_advance(FilingType.PATENT, 1, {**patent_basic_info, "foo": "bar"})
        assert check.status == StepStatus.INCOMPLETE
        assert check.missing_fields == ["foo"]

    def test_bad_date_counts_as_missing(self):
        check = can_advance(FilingType.TRADEMARK, 3, {"filingBasis": "use", "firstUseDate": "soon"})
        assert check.missing_fields == ["firstUseDate", "specimenDescription"]
        assert "date" in check.errors["firstUseDate"]

    def test_record_completeness(self, patent_basic_info, patent_description):
        record = {**patent_basic_info, **patent_description, "claims": [{"id": "1", "text": "A."}], "foo": 1}
        check = record_completeness(FilingType.PATENT, record)
        assert check.status == StepStatus.INCOMPLETE
        assert check.step == 1
        assert check.missing_fields == ["foo"]


class TestRecordCompleteness:
    def test_complete_patent(self, patent_basic_info, patent_description):
        record = patent(**patent_basic_info, **patent_description,
                        claims=[{"id": "1", "text": "A controller."}])
        check = record_completeness(FilingType.PATENT, record)
        assert check.is_valid
        assert check.step == 4

    def test_reports_first_incomplete_step(self, patent_basic_info):
        check = record_completeness(FilingType.PATENT, patent(**patent_basic_info))
        assert not check.is_valid
        assert check.step == 2
        assert "technicalField" in check.missing_fields
        assert "claims" in check.missing_fields

    def test_unresolved_dependent_claim_blocks_finalizing(self, patent_basic_info, patent_description):
        record = patent(**patent_basic_info, **patent_description, claims=[
            {"id": "1", "text": "A controller."},
            {"id": "2", "text": "The controller of claim ?.", "kind": "dependent"},
        ])
        check = record_completeness(FilingType.PATENT, record)
        assert not check.is_valid
        assert check.missing_fields == ["claims"]
        assert "2" in check.errors["claims"]

    def test_to_dict(self):
        data = can_advance(FilingType.PATENT, 1, {}).to_dict()
        assert data["isValid"] is False
        assert data["status"] == "incomplete"
        assert data["missingFields"][0] == "title"
