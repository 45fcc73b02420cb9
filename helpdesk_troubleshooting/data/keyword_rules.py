from helpdesk_troubleshooting.domain.rules import KeywordRule
from helpdesk_troubleshooting.state.models import UserResponse

# ==============================================================================
# SCOPE VOCABULARY
# ==============================================================================

OUT_OF_SCOPE_KEYWORDS = (
    "password",
    "account",
    "billing",
    "ticket",
    "software license",
    "software licensing",
    "licence",
    "hr",
    "policy",
    "procurement",
    "payroll",
    "user account",
    "login credentials",
)

IN_SCOPE_KEYWORDS = (
    # Devices
    "monitor", "display", "screen", "pc", "computer", "laptop", "desktop",
    "printer", "keyboard", "mouse", "peripheral", "hardware", "device",
    # Power / boot
    "power", "boot", "startup", "start", "turn on", "won't turn on",
    "won't start", "frozen", "overheating", "slow", "blank", "no signal",
    "not working", "windows", "window",
    # Connectivity
    "ethernet", "network", "cable", "connection", "internet", "wifi",
    "wi-fi", "wired", "access",
)

# Out-of-scope terms take precedence over any hardware vocabulary.
SCOPE_RULES = (
    KeywordRule(result=False, phrases=OUT_OF_SCOPE_KEYWORDS),
    KeywordRule(result=True, phrases=IN_SCOPE_KEYWORDS),
)

# ==============================================================================
# REPLY INTENTS (evaluated in priority order)
# ==============================================================================

RESPONSE_RULES = (
    KeywordRule(
        result=UserResponse.IT_WORKED,
        phrases=("it worked", "worked", "fixed", "resolved"),
    ),
    KeywordRule(
        result=UserResponse.STILL_NOT_WORKING,
        phrases=(
            "still not working", "still not", "not working",
            "didn't work", "didnt work", "did not work", "doesn't work",
        ),
    ),
    KeywordRule(
        result=UserResponse.CANNOT_TRY_NOW,
        phrases=("cannot try", "can't try", "cant try", "cannot", "later"),
    ),
    KeywordRule(
        result=UserResponse.YES,
        phrases=("yes", "y", "yeah", "yep"),
        mode="word",
    ),
    KeywordRule(
        result=UserResponse.NO,
        phrases=("no", "n", "nope", "nah"),
        mode="word",
    ),
)

# Unparseable replies keep the user inside the step loop.
DEFAULT_RESPONSE = UserResponse.STILL_NOT_WORKING
