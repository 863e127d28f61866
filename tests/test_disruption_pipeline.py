# tests/test_disruption_pipeline.py
"""
End-to-end pipeline with a scripted completion service.
"""

import asyncio
import json

import pytest
from pydantic import ValidationError

from adapters.json_exporter import export_result_json
from conftest import FakeCompletionService, make_settings
from core.domain.language import Language
from core.domain.models import DisruptionRecord, ParseMode
from core.errors import CompletionServiceExhausted, CompletionTimeout, InputValidationError
from core.services.disruption_pipeline import (
    FIELD_ALIASES,
    PipelineHooks,
    build_record,
    parse_notice,
    resolve_field,
    validate_request,
)

NOTICE = "پرواز ۶۵۶۸ آسمان از تهران به بغداد در تاریخ ۱۴۰۴/۰۷/۲۶ با تاخیر ساعت ۰۱:۰۰ انجام می‌شود"

EXTRACTION = """```json
{
  "airline": "Aseman",
  "flightNumber": "6568",
  "date": "۱۴۰۴/۰۷/۲۶",
  "origin": "Tehran (IKA)",
  "destination": "bgw",
  "type": "",
  "oldTime": "19:30",
  "newTime": "۰۱:۰۰",
  "newFlightNumber": "",
  "newAirline": ""
}
```"""


def _run(service, settings=None, hooks=None, **request_kwargs):
    request_kwargs.setdefault("text", NOTICE)
    request_kwargs.setdefault("api_key", "secret")
    request = validate_request(**request_kwargs)
    return asyncio.run(
        parse_notice(
            settings=settings or make_settings(),
            request=request,
            service=service,
            hooks=hooks,
        )
    )


# ============================================================
# REQUEST VALIDATION
# ============================================================

@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"text": "   ", "api_key": "k"}, "text"),
        ({"text": None, "api_key": "k"}, "text"),
        ({"text": "notice", "api_key": None}, "api_key"),
        ({"text": "notice", "api_key": "", "mode": "summarize"}, "mode"),
    ],
)
def test_invalid_requests(kwargs, field):
    with pytest.raises(InputValidationError) as info:
        validate_request(**kwargs)
    assert any(err.startswith(field) for err in info.value.errors)


def test_request_normalization():
    request = validate_request(text="  notice ", api_key=" k ", model="  ", target_language="fa")
    assert request.text == "notice"
    assert request.api_key == "k"
    assert request.model is None
    assert request.target_language is Language.PERSIAN
    assert request.mode is ParseMode.EXTRACT


def test_invalid_request_never_reaches_the_service():
    service = FakeCompletionService(extraction=EXTRACTION)
    with pytest.raises(InputValidationError):
        _run(service, api_key="")
    assert service.calls == []


# ============================================================
# EXTRACTION
# ============================================================

def test_full_extraction():
    service = FakeCompletionService(extraction=EXTRACTION)
    result = _run(service, model="gemini-pro")

    record = result.record
    assert record is not None
    assert record.airline == "Aseman"
    assert record.flight_number == "6568"
    assert record.date == "2025-10-18"
    assert record.origin == "IKA"
    assert record.destination == "BGW"
    assert record.disruption_type == "delay"
    assert record.old_time == "19:30"
    assert record.new_time == "01:00"
    assert record.translated_text is None
    assert result.translated is None
    assert result.raw_extraction == EXTRACTION
    assert result.warnings == []

    assert len(service.calls) == 1
    prompt, api_key, model = service.calls[0]
    assert NOTICE in prompt
    assert api_key == "secret"
    assert model == "gemini-pro"


def test_aliases_are_resolved_in_priority_order():
    raw = json.dumps(
        {
            "flight": "999",
            "flight_no": "123",
            "flightDate": "2025/01/30",
            "from": "NJF",
            "to": "Mashhad (MHD)",
            "new_time": "19:75",
        }
    )
    result = _run(FakeCompletionService(extraction=raw))
    record = result.record
    assert record.flight_number == "123"
    assert record.date == "2025-01-30"
    assert record.origin == "NJF"
    assert record.destination == "MHD"
    assert record.new_time == "19:59"
    assert record.disruption_type == "delay"


def test_resolve_field_skips_empty_and_structured_values():
    obj = {"flightNumber": " ", "flight_no": ["x"], "flight": 6568}
    assert resolve_field(obj, "flightNumber") == "6568"
    assert resolve_field({}, "airline") == ""
    assert set(FIELD_ALIASES) == {
        "airline", "flightNumber", "date", "origin", "destination",
        "type", "oldTime", "newTime", "newFlightNumber", "newAirline",
    }


def test_number_change_inferred():
    raw = '{"flightNumber": "6568", "newFlightNumber": "6570", "newTime": "22:10"}'
    record = _run(FakeCompletionService(extraction=raw)).record
    assert record.disruption_type == "number_time_delay"


def test_malformed_completion_degrades_to_empty_record():
    warnings = []
    result = _run(
        FakeCompletionService(extraction="Sorry, I cannot help with that."),
        hooks=PipelineHooks(warning=warnings.append),
    )
    assert result.record == DisruptionRecord()
    assert result.record.disruption_type == ""
    assert len(result.warnings) == 1
    assert warnings == result.warnings


def test_empty_completion_is_not_an_error():
    result = _run(FakeCompletionService(extraction=""))
    assert result.record == DisruptionRecord()
    assert result.warnings == []


def test_soft_field_failures_are_reported():
    raw = json.dumps(
        {
            "date": "1600/01/01",
            "oldTime": "morning",
            "origin": "Baghdad",
            "type": "rescheduled",
            "newTime": "10:00",
        }
    )
    result = _run(FakeCompletionService(extraction=raw))
    record = result.record
    assert record.date is None
    assert record.old_time is None
    assert record.origin == "BAGHDAD"
    assert record.disruption_type == "delay"
    joined = "\n".join(result.warnings)
    assert "date" in joined
    assert "oldTime" in joined
    assert "origin" in joined
    assert "rescheduled" in joined


def test_payload_omits_absent_optional_fields():
    record = build_record({"flightNumber": "1", "date": "bad"})
    payload = record.to_payload()
    assert "date" not in payload
    assert "newTime" not in payload
    assert payload["flightNumber"] == "1"
    assert payload["type"] == ""


# ============================================================
# TRANSLATION
# ============================================================

def test_extraction_with_translation_runs_concurrently():
    started = []
    both_started = asyncio.Event()

    async def on_call(prompt):
        started.append(prompt)
        if len(started) == 2:
            both_started.set()
        await asyncio.wait_for(both_started.wait(), timeout=2)

    service = FakeCompletionService(
        extraction=EXTRACTION,
        translation="  رحلة آسمان ٦٥٦٨  ",
        on_call=on_call,
    )
    result = _run(service, include_translation=True)

    assert len(service.calls) == 2
    assert result.translated == "رحلة آسمان ٦٥٦٨"
    assert result.record.translated_text == "رحلة آسمان ٦٥٦٨"
    assert result.raw_translation == "  رحلة آسمان ٦٥٦٨  "
    assert result.record.date == "2025-10-18"


def test_translation_failure_aborts_pipeline():
    service = FakeCompletionService(
        extraction=EXTRACTION,
        translation=CompletionServiceExhausted(status_code=503, body="overloaded", attempts=8),
    )
    with pytest.raises(CompletionServiceExhausted) as info:
        _run(service, include_translation=True)
    assert info.value.status_code == 503


def test_pure_translation_mode():
    service = FakeCompletionService(translation="ترجمه شده\n")
    result = _run(service, mode=ParseMode.TRANSLATE, target_language=Language.PERSIAN)

    assert result.record is None
    assert result.translated == "ترجمه شده"
    assert len(service.calls) == 1
    assert "Translate the text to Persian" in service.calls[0][0]


def test_whole_sweep_timeout():
    service = FakeCompletionService(extraction=EXTRACTION, delay=1.0)
    with pytest.raises(CompletionTimeout):
        _run(service, settings=make_settings(completion_timeout_seconds=0.05))


# ============================================================
# RECORD INVARIANTS / EXPORT
# ============================================================

@pytest.mark.parametrize(
    "kwargs",
    [
        {"date": "2025-1-5"},
        {"date": "1404-07-26x"},
        {"new_time": "7:05"},
        {"old_time": "24:00"},
        {"disruption_type": "postponed"},
    ],
)
def test_record_rejects_invalid_values(kwargs):
    with pytest.raises(ValidationError):
        DisruptionRecord(**kwargs)


def test_record_is_frozen():
    record = DisruptionRecord(airline="Aseman")
    with pytest.raises(ValidationError):
        record.airline = "Iran Air"


def test_export_json(tmp_path):
    result = _run(FakeCompletionService(extraction=EXTRACTION))
    path = export_result_json(result=result, output_path=tmp_path / "out" / "result.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["data"]["date"] == "2025-10-18"
    assert data["data"]["flightNumber"] == "6568"
    assert data["raw_extraction"] == EXTRACTION
    assert data["warnings"] == []
