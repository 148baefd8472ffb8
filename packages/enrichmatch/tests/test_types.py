"""Tests for input parsing and record serialisation."""

from enrichmatch.types import CompanyRecord, InputRecord, MatchResult, ScoredHit


def test_from_mapping_resolves_aliases():
    record = InputRecord.from_mapping({
        "website": "acme.com",
        "companyCommercialName": "Acme",
        "phone": " 555-0100 ",
    })
    assert record.domain == "acme.com"
    assert record.name == "Acme"
    assert record.phone == "555-0100"


def test_from_mapping_blank_fields_are_absent():
    record = InputRecord.from_mapping({"name": "  ", "domain": "", "phone": None})
    assert record.is_empty()


def test_social_media_string_list_and_platform_fields():
    record = InputRecord.from_mapping({
        "socialMedia": "https://facebook.com/acme, https://twitter.com/acme",
        "twitter": "https://twitter.com/acme",
        "linkedin": "https://linkedin.com/company/acme",
    })
    assert record.social_handles() == [
        "https://facebook.com/acme",
        "https://twitter.com/acme",
        "https://linkedin.com/company/acme",
    ]


def test_social_media_as_list():
    record = InputRecord.from_mapping({"socialMedia": ["fb.com/a", "", None]})
    assert record.social_media == ("fb.com/a",)


def test_social_media_scalar_is_stringified():
    assert InputRecord.from_mapping({"socialMedia": 5}).social_media == ("5",)
    assert InputRecord.from_mapping({"socialMedia": True}).social_media == ("True",)


def test_company_record_splits_comma_separated_social():
    record = CompanyRecord.from_source({
        "domain": "acme.com",
        "companyCommercialName": "Acme",
        "socialMedia": "https://facebook.com/acme,https://twitter.com/acme",
    })
    assert record.social_media == ["https://facebook.com/acme", "https://twitter.com/acme"]


def test_scored_hit_to_dict_uses_document_keys():
    hit = ScoredHit("acme.com", CompanyRecord(domain="acme.com", commercial_name="Acme"), 8.0)
    data = hit.to_dict()
    assert data["id"] == "acme.com"
    assert data["score"] == 8.0
    assert data["companyCommercialName"] == "Acme"
    assert data["socialMedia"] == []


def test_match_result_best_match():
    assert MatchResult().best_match is None
    hit = ScoredHit("acme.com", CompanyRecord(domain="acme.com"), 1.0)
    assert MatchResult(hits=[hit]).best_match is hit
