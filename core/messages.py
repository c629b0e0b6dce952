"""
User-facing message text for the ticket workflow.
"""

MENU_PROMPT = "Please select the type of support you need:"
MENU_PLACEHOLDER = "Select the type of support you need"
TICKET_CREATED = "✅ Your ticket has been created!"
NO_PERMISSION = "You do not have permission."
CLAIM_SUCCESS = "✅ Ticket claimed and moved to your category."
CLOSING_TICKET = "🗑️ Closing ticket..."
NOTIFY_FAILED = "⚠️ Ticket claimed, but the ticket creator could not be notified."


def new_ticket_message(requester_id: int, issue: str, category: str,
                       priority: str, requested_at: str) -> str:
    """Opening message posted into a fresh ticket channel."""
    return (
        f"Ticket created by <@{requester_id}>:\n\n"
        f"**Issue**: {issue}\n"
        f"**Category**: {category}\n"
        f"**Priority**: {priority}\n"
        f"**Time of Request**: {requested_at}"
    )


def claimed_notification(staff_name: str) -> str:
    return f"📬 Your ticket has been claimed by {staff_name}! Hang tight, we'll assist you shortly."
