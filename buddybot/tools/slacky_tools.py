"""
Slacky Tools
============

The support-desk catalog used by the Slack-facing robot.

These tools allow the robot to:
- Outline a Sumo Logic investigation for a form or submission
- Walk a user through SSO auto-fill troubleshooting
- Record free-text feedback about the bot
- Record a -5..+5 rating of an answer

The query and SSO tools return guidance text only; they do not call Sumo
Logic or the SSO provider. Feedback and ratings are written as one JSON
file per record into the configured feedback directory.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

from buddybot.tools import Tool, ToolCatalog
from buddybot.utils.logger import Logger

logger = Logger("SlackyTools")


SUMO_LOGIC_QUERY = "sumo_logic_query"
SSO_AUTOFILL_ASSISTANCE = "sso_autofill_assistance"
COLLECT_USER_FEEDBACK = "collect_user_feedback"
COLLECT_USER_RATING = "collect_user_rating"

FEEDBACK_CATEGORIES = {
    "conversation": "Conversation Quality",
    "service": "Service Experience",
    "feature_request": "Feature Request",
    "bug_report": "Bug Report",
    "other": "General Feedback",
}

RATING_DESCRIPTIONS = {
    -5: "World War III bad",
    -4: "Very poor",
    -3: "Poor",
    -2: "Misleading or just wrong",
    -1: "Information had inaccuracies",
    0: "Not good/not bad",
    1: "A little helpful",
    2: "Helpful, will use again",
    3: "Very helpful",
    4: "Excellent",
    5: "Nominate iStackBuddy for world peace prize",
}


# ==============================================================================
# Tool: Sumo Logic Query
# ==============================================================================

def _sumo_logic_query(params: dict) -> str:
    """Describe what a Sumo Logic investigation would cover for these ids."""
    from_date = params.get("fromDate", "")
    to_date = params.get("toDate", "")
    form_id = params.get("formId")
    submission_id = params.get("submissionId")

    id_lines = []
    if form_id:
        id_lines.append(f"Form ID: {form_id}")
    if submission_id:
        id_lines.append(f"Submission ID: {submission_id}")

    if submission_id:
        analysis = (
            f"- Submission lifecycle tracking for submission {submission_id}\n"
            "- Integration run logs and status\n"
            "- Email send logs related to this submission\n"
            "- Error logs and failure points"
        )
    elif form_id:
        analysis = (
            f"- All submissions for form {form_id} in the specified date range\n"
            "- Form performance metrics and submission patterns\n"
            "- Integration success/failure rates\n"
            "- Common error patterns"
        )
    else:
        analysis = (
            "- General submission activity in the date range\n"
            "- System-wide performance metrics\n"
            "- Error trend analysis"
        )

    sections = [
        "Sumo Logic Query Analysis",
        f"Date Range: {from_date} to {to_date}",
    ]
    if id_lines:
        sections.append("\n".join(id_lines))
    sections.append(
        "Query Results:\n"
        "Based on the provided parameters, here's what I would help you analyze:\n"
        f"{analysis}"
    )
    sections.append(
        "Next Steps:\n"
        "- I can help you craft specific Sumo Logic queries\n"
        "- Provide query syntax for your specific use case\n"
        "- Interpret results and identify patterns"
    )
    return "\n\n".join(sections)


sumo_logic_query_tool = Tool(
    name=SUMO_LOGIC_QUERY,
    description=(
        "Assist users with Sumo Logic queries to analyze form submissions, logs, "
        "and related data. Helps trace submission lifecycle and troubleshoot issues."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "fromDate": {
                "type": "string",
                "description": 'Start date for the query as a numeric string (e.g., "1640995200000" for a Unix timestamp)',
            },
            "toDate": {
                "type": "string",
                "description": 'End date for the query as a numeric string (e.g., "1641081600000" for a Unix timestamp)',
            },
            "formId": {
                "type": "string",
                "description": 'Form ID to query data for, as a numeric string (e.g., "12345")',
            },
            "submissionId": {
                "type": "string",
                "description": 'Specific submission ID to analyze, as a numeric string (e.g., "67890")',
            },
        },
        "required": ["fromDate", "toDate"],
    },
    execute=_sumo_logic_query,
)


# ==============================================================================
# Tool: SSO Auto-fill Assistance
# ==============================================================================

def _sso_autofill_assistance(params: dict) -> str:
    form_id = params.get("formId", "")
    account_id = params.get("accountId", "")

    return (
        "SSO Auto-fill Configuration Analysis\n\n"
        f"Form ID: {form_id}\n"
        f"Account ID: {account_id}\n\n"
        "Common Issues to Check:\n"
        "- SSO provider configuration and field mappings\n"
        "- Form field IDs matching SSO attribute names\n"
        "- Account-level SSO settings and permissions\n"
        "- Form-specific SSO protection settings\n\n"
        "Configuration Verification:\n"
        f"- Verify SSO provider is properly configured for account {account_id}\n"
        f"- Check that form {form_id} has SSO protection enabled\n"
        "- Confirm field mapping between SSO attributes and form fields\n"
        "- Validate user permissions and group memberships\n\n"
        "Debugging Steps:\n"
        "- Test SSO login flow independently\n"
        "- Check browser console for JavaScript errors\n"
        "- Verify SAML/OIDC response contains expected attributes\n"
        "- Review form field names and auto-fill mappings"
    )


sso_autofill_assistance_tool = Tool(
    name=SSO_AUTOFILL_ASSISTANCE,
    description=(
        "Assist users with form SSO auto-fill questions and troubleshooting. "
        "Helps diagnose SSO configuration and auto-fill mapping issues."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "formId": {
                "type": "string",
                "description": 'Form ID to analyze SSO auto-fill configuration for (e.g., "12345")',
            },
            "accountId": {
                "type": "string",
                "description": 'Account ID associated with the SSO configuration (e.g., "98765")',
            },
        },
        "required": ["formId", "accountId"],
    },
    execute=_sso_autofill_assistance,
)


# ==============================================================================
# Feedback and ratings
# ==============================================================================

class FeedbackRecorder:
    """
    Writes feedback and rating records as JSON files.

    One file per record, named feedback-<timestamp>.json. A failed write is
    logged and does not fail the tool call: the user still gets their
    acknowledgement.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def record(self, entry: dict) -> Path | None:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")
        path = self.directory / f"feedback-{stamp}.json"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(entry, indent=2, default=str), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write feedback record to {path}", e)
            return None

        logger.info(f"Recorded {entry.get('type', 'feedback')}", {"path": str(path)})
        return path


def _collect_user_feedback(recorder: FeedbackRecorder, params: dict) -> str:
    feedback = params.get("feedback", "")
    category = params.get("category", "other")
    label = FEEDBACK_CATEGORIES.get(category, FEEDBACK_CATEGORIES["other"])

    recorder.record({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": "feedback",
        "feedback": feedback,
        "category": category,
    })

    if category == "bug_report":
        closing = "I've logged this as a bug report and will make sure the development team sees it."
    elif category == "feature_request":
        closing = "Great suggestion! I've logged this feature request for the team to consider."
    else:
        closing = "Your feedback has been logged and will help improve the iStackBuddy experience."

    return (
        "**Feedback Collected Successfully**\n\n"
        f"**Category:** {label}\n"
        f'**Your Feedback:** "{feedback}"\n\n'
        "Thank you for taking the time to share your thoughts!\n\n"
        f"{closing}"
    )


def _collect_user_rating(recorder: FeedbackRecorder, params: dict) -> str:
    try:
        rating = int(params.get("rating"))
    except (TypeError, ValueError):
        rating = None

    if rating is None or rating < -5 or rating > 5:
        scale = "\n".join(
            f"- {value:+d}: {RATING_DESCRIPTIONS[value]}" for value in (-5, -2, -1, 0, 1, 2, 5)
        )
        return (
            "**Invalid Rating**\n\n"
            "Ratings must be between -5 and +5. Please provide a rating in this range.\n\n"
            f"**Rating Scale:**\n{scale}"
        )

    context = params.get("context", "")
    comment = params.get("comment")

    recorder.record({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": "rating",
        "rating": rating,
        "context": context,
        "comment": comment,
    })

    if rating >= 3:
        closing = "Thank you so much! I'm thrilled that I could provide excellent assistance."
    elif rating >= 1:
        closing = "Thank you for the positive feedback! I'll keep working to be even more helpful."
    elif rating == 0:
        closing = "Thank you for the honest feedback. I'll use this to understand where I can improve."
    else:
        closing = (
            "Thank you for the honest feedback. I apologize that this interaction didn't "
            "meet your expectations."
        )

    lines = [
        f"**Rating Received: {rating:+d}/5**",
        "",
        f"**Context:** {context}",
        f"**Rating:** {RATING_DESCRIPTIONS[rating]}",
    ]
    if comment:
        lines.append(f'**Comment:** "{comment}"')
    lines += ["", closing]
    return "\n".join(lines)


def build_slacky_catalog(feedback_dir: Path) -> ToolCatalog:
    """
    Build the Slacky catalog.

    Args:
        feedback_dir: Directory that receives feedback and rating records
    """
    recorder = FeedbackRecorder(feedback_dir)

    collect_feedback_tool = Tool(
        name=COLLECT_USER_FEEDBACK,
        description=(
            "Record feedback the user gives about the conversation, the service, "
            "a feature they would like, or a bug they found."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "feedback": {
                    "type": "string",
                    "description": "The user's feedback, in their own words",
                },
                "category": {
                    "type": "string",
                    "enum": list(FEEDBACK_CATEGORIES),
                    "description": "What the feedback is about",
                },
            },
            "required": ["feedback", "category"],
        },
        execute=lambda params: _collect_user_feedback(recorder, params),
    )

    collect_rating_tool = Tool(
        name=COLLECT_USER_RATING,
        description=(
            "Record the user's rating of an answer on a scale from -5 (terrible) "
            "to +5 (outstanding)."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "rating": {
                    "type": "integer",
                    "minimum": -5,
                    "maximum": 5,
                    "description": "Rating from -5 to +5",
                },
                "context": {
                    "type": "string",
                    "description": "What is being rated",
                },
                "comment": {
                    "type": "string",
                    "description": "Optional comment from the user",
                },
            },
            "required": ["rating", "context"],
        },
        execute=lambda params: _collect_user_rating(recorder, params),
    )

    return ToolCatalog("slacky", [
        sumo_logic_query_tool,
        sso_autofill_assistance_tool,
        collect_feedback_tool,
        collect_rating_tool,
    ])
