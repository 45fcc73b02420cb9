"""
Names of the templated chat replies. No file system access here.
"""

from typing import List


class Template:
    """Reply template names. Pass these to `render` instead of raw strings."""

    GUIDE_CONFIRMATION = "guide_confirmation"
    GUIDE_ALTERNATIVES = "guide_alternatives"
    STEP = "step"
    CHECKLIST_FORM = "checklist_form"

    @classmethod
    def names(cls) -> List[str]:
        return [
            value for key, value in vars(cls).items()
            if key.isupper() and isinstance(value, str)
        ]
