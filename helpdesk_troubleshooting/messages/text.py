"""
Fixed user-facing sentences.

The out-of-scope reply and both prompt suffixes are shown verbatim by
the presentation layer and must not be reworded.
"""

OUT_OF_SCOPE_REPLY = (
    "Sorry, I don't have relevant information for that request because it's outside "
    "my scope of hardware troubleshooting. I can help with PCs, monitors, printers, "
    "and basic desktop network/power issues. For this request, please use the support "
    "portal (My Tickets) or contact the service desk."
)

STEP_PROMPT_SUFFIX = "Reply: **It worked**, **Still not working**, or **Cannot try now**."
GUIDE_CONFIRMATION_SUFFIX = "Reply: **Yes** or **No**"

# --- Guide selection ---

NO_GUIDES_REPLY = (
    "I couldn't find specific troubleshooting guides for that issue in our knowledge base. "
    "Please contact the service desk for assistance, or try describing the problem in "
    "different words (e.g., 'PC won't start', 'monitor shows no display', 'printer not working')."
)
NO_ALTERNATIVES_REPLY = (
    "I don't have other suitable guides for your issue. Let's try a different description - "
    "can you explain your problem in different words?"
)
GUIDE_REJECTED_REPLY = (
    "Let's try again with a different description of your problem. "
    "What technical issue are you experiencing?"
)
CONFIRMATION_REPROMPT = (
    "Please reply with **Yes**, **No**, or select a number from the alternatives shown."
)

# --- Step loop ---

STEP_REPROMPT = "Please reply with **It worked**, **Still not working**, or **Cannot try now**."
GUIDE_INTRO_HEADING = '**Troubleshooting steps for "{title}":**'
RESUME_HEADING = 'Welcome back! Continuing with your previous session for "{title}".'
RESOLVED_REPLY = "Great! Glad I could help. Your session is now closed."
ABANDONED_REPLY = (
    "I understand you can't try this now. Feel free to return later and describe the "
    "issue again, or contact support if you need immediate assistance."
)
ESCALATION_REPLY = (
    "Looks like this didn't resolve your problem. I'll create a ticket for the service "
    "desk so they can help further."
)
TICKET_REFERENCE = "Your ticket reference is **{ticket_id}**."

# --- Recovery ---

START_OVER_REPLY = (
    "I'm not sure how to help with that. Let's start over - what's the issue you're experiencing?"
)
ERROR_REPLY = (
    "I encountered an error. Let's start fresh - what technical issue can I help you with?"
)

# --- Checklist ---

CHECKLIST_HEADING = (
    'Here is the full checklist for "{title}". Tick the steps you tried, then tell me how it went.'
)
CHECKLIST_RESOLVED_REPLY = (
    "Great! I'm glad the troubleshooting steps resolved your issue. Your session has been "
    "marked as resolved. Feel free to ask if you have any other technical problems."
)
CHECKLIST_TICKET_REPLY = (
    "I understand the troubleshooting steps didn't resolve your issue. I've created a support "
    "ticket (ID: {ticket_id}) for further assistance. Our technical support team will review "
    "your case and provide more advanced troubleshooting or arrange for hardware replacement "
    "if needed."
)
CHECKLIST_ANOTHER_ISSUE_REPLY = (
    "Got it, seems like this guide isn't matching your issue. I've noted this in your session. "
    "Could you please describe your problem again? I'll search for a more suitable "
    "troubleshooting guide."
)

# Replies used when nothing was (or could be) recorded
CHECKLIST_FALLBACK_REPLIES = {
    "resolved": (
        "Great! I'm glad the troubleshooting steps resolved your issue. "
        "Feel free to ask if you have any other technical problems."
    ),
    "not_resolved": (
        "I understand the troubleshooting steps didn't resolve your issue. For further "
        "assistance, please contact our technical support team who can provide more advanced "
        "troubleshooting or arrange for hardware replacement if needed."
    ),
    "another_issue": (
        "Got it, seems like this guide isn't matching your issue. Could you please describe "
        "your problem again? I'll search for a more suitable troubleshooting guide."
    ),
}
CHECKLIST_ALREADY_CLOSED_REPLY = (
    "This troubleshooting session is already closed, so nothing was changed."
)
