"""
Tests for the templated chat replies
"""

import pytest
from jinja2 import UndefinedError

from helpdesk_troubleshooting.messages import Template, render
from helpdesk_troubleshooting.messages.loader import missing_replies


class TestReplyTemplates:
    def test_every_reply_name_has_a_file(self):
        assert set(Template.names()) == {
            "guide_confirmation", "guide_alternatives", "step", "checklist_form",
        }
        assert missing_replies() == []

    def test_step_reply_without_heading(self):
        reply = render(
            Template.STEP, heading=None, number=2, text="Check the cable.", suffix="Did that work?"
        )

        assert reply == "Step 2: Check the cable.\n\nDid that work?"

    def test_missing_value_is_an_error(self):
        with pytest.raises(UndefinedError):
            render(Template.STEP, heading=None, number=1, suffix="Did that work?")
