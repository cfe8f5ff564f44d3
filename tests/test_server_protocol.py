"""Tests for the JSON-lines protocol message types."""

from __future__ import annotations

import json

import pytest

from shiftprogress.engine.events import AdaptiveAdjustmentMade, SpecialtyUnlocked
from shiftprogress.server.protocol import Notification, Request, Response


class TestRequest:
    def test_from_dict_full(self):
        data = {"id": 1, "method": "scoreTopics", "params": {"topics": ["Asthma"]}}
        req = Request.from_dict(data)
        assert req.id == 1
        assert req.method == "scoreTopics"
        assert req.params == {"topics": ["Asthma"]}

    def test_from_dict_no_params(self):
        req = Request.from_dict({"id": 2, "method": "getProgressionSummary"})
        assert req.params == {}

    def test_missing_method(self):
        with pytest.raises(ValueError, match="method"):
            Request.from_dict({"id": 3})

    def test_params_must_be_object(self):
        with pytest.raises(ValueError, match="params"):
            Request.from_dict({"id": 4, "method": "scoreTopics", "params": [1, 2]})


class TestResponse:
    def test_success_json_line(self):
        line = Response(id=1, result={"ok": True}).to_json_line()
        assert line.endswith("\n")
        assert json.loads(line) == {"id": 1, "result": {"ok": True}}

    def test_failure_from_exception(self):
        parsed = json.loads(Response.failure(2, ValueError("Unknown method: foo")).to_json_line())
        assert parsed == {"id": 2, "error": "Unknown method: foo"}

    def test_failure_without_message(self):
        assert Response.failure(3, KeyError()).error == "KeyError"


class TestNotification:
    def test_event_notification(self):
        parsed = json.loads(Notification.for_event(SpecialtyUnlocked("Cardiology")).to_json_line())
        assert parsed == {
            "method": "event",
            "params": {"event": "specialtyUnlocked", "specialty": "Cardiology"},
        }

    def test_adjustment_notification(self):
        notif = Notification.for_event(AdaptiveAdjustmentMade("increase_difficulty", 1.05))
        assert notif.params == {
            "event": "adaptiveAdjustmentMade",
            "kind": "increase_difficulty",
            "scaling": 1.05,
        }

    def test_empty_params(self):
        assert json.loads(Notification("ping").to_json_line()) == {"method": "ping", "params": {}}
