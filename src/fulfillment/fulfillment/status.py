"""Fulfillment status actions: command, handler and entry point.

``apply_action`` is the public entry point used by warehouse tooling and
carrier webhooks. It loads the fulfillment, lets the coordinator validate and
apply the action, and persists the result in a single unit of work.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.coordinator import (
    ActionContext,
    ActionResult,
    FulfillmentAction,
    FulfillmentStatusCoordinator,
)
from fulfillment.fulfillment.errors import PersistenceError
from fulfillment.fulfillment.fulfillment import Fulfillment

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Fulfillment")
class ApplyFulfillmentAction:
    """Move a fulfillment forward by applying a named action."""

    fulfillment_id = Identifier(required=True)
    action = String(required=True, choices=FulfillmentAction)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=500)
    carrier_id = String(max_length=100)
    carrier_name = String(max_length=100)
    location = String(max_length=200)
    reason = String(max_length=500)
    package_weight = Float(min_value=0.0)
    package_count = Integer(min_value=0)
    expected_revision = Integer(min_value=0)
    performed_by = String(max_length=100)


@fulfillment.command_handler(part_of=Fulfillment)
class FulfillmentStatusHandler:
    @handle(ApplyFulfillmentAction)
    def apply_action(self, command) -> ActionResult:
        repo = current_domain.repository_for(Fulfillment)
        ff = repo.get(command.fulfillment_id)

        result = FulfillmentStatusCoordinator().apply(
            ff,
            FulfillmentAction(command.action),
            ActionContext(
                tracking_number=command.tracking_number,
                tracking_url=command.tracking_url,
                carrier_id=command.carrier_id,
                carrier_name=command.carrier_name,
                location=command.location,
                reason=command.reason,
                package_weight=command.package_weight,
                package_count=command.package_count,
                expected_revision=command.expected_revision,
                performed_by=command.performed_by,
            ),
        )
        repo.add(ff)

        logger.info(
            "Fulfillment action applied",
            fulfillment_id=result.fulfillment_id,
            action=result.action,
            previous_status=result.previous_status,
            new_status=result.new_status,
            performed_by=command.performed_by,
        )
        return result


def apply_action(
    fulfillment_id: str,
    action: FulfillmentAction | str,
    context: ActionContext | None = None,
) -> ActionResult:
    """Apply ``action`` to the fulfillment and return its previous and new status.

    Raises:
        ObjectNotFoundError: no fulfillment has this id.
        IllegalActionError: the action is not allowed from the current status.
        MissingTrackingNumberError: ``ship`` was requested without a tracking number.
        ValidationError: the action name or context values are invalid.
        PersistenceError: the store failed; nothing was written.
    """
    action_value = action.value if isinstance(action, FulfillmentAction) else action
    context = context or ActionContext()

    try:
        return current_domain.process(
            ApplyFulfillmentAction(
                fulfillment_id=fulfillment_id,
                action=action_value,
                tracking_number=context.tracking_number,
                tracking_url=context.tracking_url,
                carrier_id=context.carrier_id,
                carrier_name=context.carrier_name,
                location=context.location,
                reason=context.reason,
                package_weight=context.package_weight,
                package_count=context.package_count,
                expected_revision=context.expected_revision,
                performed_by=context.performed_by,
            ),
            asynchronous=False,
        )
    except ObjectNotFoundError:
        logger.warning("Fulfillment not found", fulfillment_id=fulfillment_id, action=action_value)
        raise
    except ValidationError as exc:
        logger.warning(
            "Fulfillment action rejected",
            fulfillment_id=fulfillment_id,
            action=action_value,
            errors=exc.messages,
        )
        raise
    except PersistenceError:
        logger.warning("Fulfillment update conflict", fulfillment_id=fulfillment_id, action=action_value)
        raise
    except Exception as exc:
        logger.error(
            "Fulfillment store failure",
            fulfillment_id=fulfillment_id,
            action=action_value,
            error=str(exc),
        )
        raise PersistenceError(f"Failed to persist action '{action_value}' for fulfillment {fulfillment_id}") from exc
