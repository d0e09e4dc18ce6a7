"""
Form Tools
==========

Read-only tools over a Formstack-style forms REST API.

These tools allow the robot to:
- Summarize a form and its related entities (submit actions,
  notification emails, confirmation emails)
- Validate field logic: report logic checks that point at fields the
  form does not have
- Validate calculations: report formulas referencing unknown fields and
  circular calculation chains

API Notes:
- Uses httpx for async HTTP requests
- Authenticated with a bearer token (FORMS_API_TOKEN)
- Endpoints: /form/{id}.json, /form/{id}/webhook.json,
  /form/{id}/notification.json, /form/{id}/confirmation.json

Tool results are JSON documents; the catalog renders them as text for
the model.
"""

import asyncio
import re
from typing import Any

import httpx

from buddybot.tools import Tool, ToolCatalog
from buddybot.utils.config import MissingCredentialError
from buddybot.utils.logger import Logger

logger = Logger("FormTools")


FORM_AND_RELATED_ENTITY_OVERVIEW = "form_and_related_entity_overview"
FORM_LOGIC_VALIDATION = "form_logic_validation"
FORM_CALCULATION_VALIDATION = "form_calculation_validation"

# [12345] style field references inside a calculation formula
_FIELD_REFERENCE = re.compile(r"\[(\d+)\]")


class FormsApiError(Exception):
    """Raised when the forms API answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class FormsApiClient:
    """
    Minimal async client for the forms API.

    A new httpx.AsyncClient is opened per request. Pass `transport` to route
    requests through a custom httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        token: str | None,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    async def _get(self, endpoint: str) -> Any:
        """
        GET an endpoint and return the decoded JSON body.

        Raises:
            MissingCredentialError: If no API token is configured
            FormsApiError: On any 4xx/5xx response
        """
        if not self.token:
            raise MissingCredentialError("FORMS_API_TOKEN", "forms API")

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            transport=self._transport,
            timeout=self._timeout,
        ) as client:
            response = await client.get(endpoint)

        if response.status_code >= 400:
            raise FormsApiError(_error_message(response), response.status_code)

        return response.json()

    async def get_form(self, form_id: str) -> dict:
        return await self._get(f"/form/{form_id}.json")

    async def get_webhooks(self, form_id: str) -> list[dict]:
        data = await self._get(f"/form/{form_id}/webhook.json")
        return data.get("webhooks") or []

    async def get_notifications(self, form_id: str) -> list[dict]:
        data = await self._get(f"/form/{form_id}/notification.json")
        return data.get("notifications") or []

    async def get_confirmations(self, form_id: str) -> list[dict]:
        data = await self._get(f"/form/{form_id}/confirmation.json")
        return data.get("confirmations") or []


def _error_message(response: httpx.Response) -> str:
    if response.status_code == 401:
        return "Authentication failed: Invalid API key"
    if response.status_code == 403:
        return "Access forbidden: API key lacks required permissions"
    if response.status_code == 404:
        return "Form not found"

    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("error_description") or body.get("error") if isinstance(body, dict) else None
    return f"API request failed ({response.status_code}): {detail or response.text or 'no details'}"


# ==============================================================================
# Analysis (pure functions over the form JSON)
# ==============================================================================

def _named_entities(items: list[dict], *name_keys: str, default: str) -> list[dict]:
    entities = []
    for item in items:
        name = next((item[key] for key in name_keys if item.get(key)), default)
        entities.append({"id": str(item.get("id", "")), "name": name})
    return entities


def build_form_overview(
    form: dict,
    webhooks: list[dict],
    notifications: list[dict],
    confirmations: list[dict],
) -> dict:
    """Shape the raw form and related entities into an overview document."""
    overview = {
        "formId": str(form.get("id", "")),
        "name": form.get("name"),
        "submissions": int(form.get("submissions") or 0),
        "version": int(form.get("version") or 1),
        "submissionsToday": int(form.get("submissions_today") or 0),
        "lastSubmissionId": form.get("last_submission_id") or None,
        "url": form.get("url"),
        "encrypted": bool(form.get("encrypted")),
        "isActive": not bool(form.get("inactive")),
        "timezone": form.get("timezone") or "UTC",
        "isOneQuestionAtATime": bool(form.get("should_display_one_question_at_a_time")),
        "hasApprovers": bool(form.get("has_approvers")),
        "isWorkflowForm": bool(form.get("is_workflow_form")),
        "fieldCount": len(form.get("fields") or []),
        "submitActions": _named_entities(webhooks, "name", "url", default="Unnamed Webhook"),
        "notificationEmails": _named_entities(
            notifications, "name", "subject", default="Unnamed Notification"
        ),
        "confirmationEmails": _named_entities(
            confirmations, "name", "subject", default="Unnamed Confirmation"
        ),
    }
    if overview["isWorkflowForm"]:
        overview["isWorkflowPublished"] = bool(form.get("is_workflow_published"))
    return overview


def _field_label(field: dict) -> str:
    return field.get("label") or field.get("name") or f"field {field.get('id')}"


def validate_field_logic(form: dict) -> dict:
    """
    Report logic checks whose predicate field does not exist on the form.

    Field logic looks like {"action": "show", "conditional": "all",
    "checks": [{"field": "123", "condition": "equals", "option": "Yes"}]}.
    """
    fields = form.get("fields") or []
    field_ids = {str(field.get("id")) for field in fields}

    issues = []
    fields_with_logic = 0
    for field in fields:
        logic = field.get("logic")
        if not isinstance(logic, dict):
            continue
        fields_with_logic += 1
        for check in logic.get("checks") or []:
            target = str(check.get("field", ""))
            if target not in field_ids:
                issues.append({
                    "fieldId": str(field.get("id")),
                    "fieldLabel": _field_label(field),
                    "referencedFieldId": target,
                    "message": (
                        f"Logic on '{_field_label(field)}' depends on field {target}, "
                        "which does not exist on this form"
                    ),
                })

    return {
        "formId": str(form.get("id", "")),
        "fieldCount": len(fields),
        "fieldsWithLogic": fields_with_logic,
        "isValid": not issues,
        "issues": issues,
    }


def _find_calculation_cycles(graph: dict[str, list[str]]) -> list[list[str]]:
    """Depth-first search for cycles; each cycle is returned once."""
    cycles: list[list[str]] = []
    seen_cycles: set[frozenset[str]] = set()
    state: dict[str, str] = {}
    path: list[str] = []

    def visit(node: str) -> None:
        state[node] = "active"
        path.append(node)
        for neighbour in graph.get(node, []):
            if state.get(neighbour) == "active":
                cycle = path[path.index(neighbour):]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle + [neighbour])
            elif neighbour not in state and neighbour in graph:
                visit(neighbour)
        path.pop()
        state[node] = "done"

    for node in graph:
        if node not in state:
            visit(node)
    return cycles


def validate_calculations(form: dict) -> dict:
    """
    Report calculations that reference unknown fields or form a cycle.

    A calculation is a formula string with [fieldId] references, e.g.
    "[101] * [102]".
    """
    fields = form.get("fields") or []
    field_ids = {str(field.get("id")) for field in fields}

    graph: dict[str, list[str]] = {}
    issues = []
    for field in fields:
        formula = field.get("calculation")
        if not isinstance(formula, str) or not formula.strip():
            continue
        field_id = str(field.get("id"))
        references = _FIELD_REFERENCE.findall(formula)
        graph[field_id] = references
        for reference in references:
            if reference not in field_ids:
                issues.append({
                    "type": "unknown_field",
                    "fieldId": field_id,
                    "fieldLabel": _field_label(field),
                    "referencedFieldId": reference,
                    "message": (
                        f"Calculation on '{_field_label(field)}' references field "
                        f"{reference}, which does not exist on this form"
                    ),
                })

    for cycle in _find_calculation_cycles(graph):
        issues.append({
            "type": "circular_reference",
            "fieldIds": cycle,
            "message": f"Circular calculation: {' -> '.join(cycle)}",
        })

    return {
        "formId": str(form.get("id", "")),
        "fieldCount": len(fields),
        "fieldsWithCalculations": len(graph),
        "isValid": not issues,
        "issues": issues,
    }


# ==============================================================================
# Catalog
# ==============================================================================

_FORM_ID_SCHEMA = {
    "type": "object",
    "properties": {
        "formId": {
            "type": "string",
            "description": 'The ID of the form, as a numeric string (e.g., "12345")',
        },
    },
    "required": ["formId"],
}


def _form_id(params: dict) -> str:
    form_id = str(params.get("formId") or "").strip()
    if not form_id:
        raise ValueError("formId is required")
    return form_id


def build_form_catalog(client: FormsApiClient) -> ToolCatalog:
    """Build the forms catalog backed by `client`."""

    async def _overview(params: dict) -> dict:
        form_id = _form_id(params)
        form, *related = await asyncio.gather(
            client.get_form(form_id),
            client.get_webhooks(form_id),
            client.get_notifications(form_id),
            client.get_confirmations(form_id),
            return_exceptions=True,
        )
        if isinstance(form, BaseException):
            raise form

        lists = []
        for label, result in zip(("webhooks", "notifications", "confirmations"), related):
            if isinstance(result, BaseException):
                logger.warning(f"Could not load {label} for form {form_id}: {result}")
                lists.append([])
            else:
                lists.append(result)

        return build_form_overview(form, *lists)

    async def _logic_validation(params: dict) -> dict:
        form = await client.get_form(_form_id(params))
        return validate_field_logic(form)

    async def _calculation_validation(params: dict) -> dict:
        form = await client.get_form(_form_id(params))
        return validate_calculations(form)

    return ToolCatalog("forms", [
        Tool(
            name=FORM_AND_RELATED_ENTITY_OVERVIEW,
            description=(
                "Get an overview of a form: submission counts, status, settings, field "
                "count, and its submit actions (webhooks), notification emails and "
                "confirmation emails."
            ),
            input_schema=_FORM_ID_SCHEMA,
            execute=_overview,
        ),
        Tool(
            name=FORM_LOGIC_VALIDATION,
            description=(
                "Check a form's field logic for conditions that depend on fields "
                "which no longer exist on the form."
            ),
            input_schema=_FORM_ID_SCHEMA,
            execute=_logic_validation,
        ),
        Tool(
            name=FORM_CALCULATION_VALIDATION,
            description=(
                "Check a form's calculations for references to unknown fields and "
                "for circular calculation chains."
            ),
            input_schema=_FORM_ID_SCHEMA,
            execute=_calculation_validation,
        ),
    ])
