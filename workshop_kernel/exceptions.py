"""
Typed Exception Hierarchy for the Workshop Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from WorkshopKernelError:

    WorkshopKernelError (base)
    |
    +-- ValidationError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedActorError
    |
    +-- ProfileError
    |   +-- ProfileNotFoundError
    |   +-- InactiveProfileError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- InvalidWorkflowStatusError
    |   +-- ApprovalRequiredError
    |   +-- ChecklistIncompleteError
    |
    +-- BikeError
    |   +-- BikeNotFoundError
    |   +-- DuplicateFrameNumberError
    |   +-- InactiveBikeError
    |   +-- ChecklistItemNotFoundError
    |   +-- CallRecordNotFoundError
    |   +-- CallStatusNotFoundError
    |
    +-- RegistrationError
    |   +-- RegistrationNotFoundError
    |   +-- RegistrationCompletedError
    |
    +-- TaskError
    |   +-- TaskNotFoundError
    |   +-- TaskRejectedError
    |   +-- TaskCompletedError
    |
    +-- InventoryError
    |   +-- InventoryItemNotFoundError
    |   +-- InventoryGroupNotFoundError
    |   +-- RepairTypeNotFoundError
    |   +-- DuplicateRepairTypeError
    |
    +-- AvailabilityError
    |   +-- AvailabilityNotFoundError
    |   +-- InvalidTimeRangeError
    |   +-- AvailabilityDecidedError
    |
    +-- PersistenceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Validation      | VALIDATION_ERROR              | Required input missing or malformed
Authorization   | UNAUTHORIZED_ACTOR            | Actor lacks the role or ownership
Profile         | PROFILE_NOT_FOUND             | Profile ID doesn't exist
                | INACTIVE_PROFILE              | Assignee is deactivated
Workflow        | INVALID_TRANSITION            | Action not defined for current state
                | INVALID_WORKFLOW_STATUS       | Status outside the fixed domain
                | APPROVAL_REQUIRED             | Repair completion before approval
                | CHECKLIST_INCOMPLETE          | Finishing with open checklist items
Bike            | BIKE_NOT_FOUND                | Bike ID doesn't exist
                | DUPLICATE_FRAME_NUMBER        | Frame number already registered
                | INACTIVE_BIKE                 | Linking a task to a finished bike
                | CHECKLIST_ITEM_NOT_FOUND      | Checklist item ID doesn't exist
                | CALL_RECORD_NOT_FOUND         | Call history entry doesn't exist
Registration    | REGISTRATION_NOT_FOUND        | Registration ID doesn't exist
                | REGISTRATION_COMPLETED        | Deleting a completed registration
Task            | TASK_NOT_FOUND                | Task ID doesn't exist
                | TASK_REJECTED                 | Mutating a rejected task
                | TASK_COMPLETED                | Rejecting a completed task
Inventory       | INVENTORY_ITEM_NOT_FOUND      | Inventory row doesn't exist
                | INVENTORY_GROUP_NOT_FOUND     | Group ID doesn't exist
                | REPAIR_TYPE_NOT_FOUND         | Repair type ID doesn't exist
                | DUPLICATE_REPAIR_TYPE         | Product name already in use
Availability    | AVAILABILITY_NOT_FOUND        | Availability request doesn't exist
                | INVALID_TIME_RANGE            | End time not after start time
                | AVAILABILITY_DECIDED          | Owner edits a decided request
Persistence     | PERSISTENCE_ERROR             | Backend failure or constraint violation

Every subclass carries its context as attributes so callers never parse
messages; ``code`` is a class attribute so it is readable without an
instance.
"""

from typing import Any, Sequence


class WorkshopKernelError(Exception):
    """Base exception for all workshop kernel errors."""

    code: str = "WORKSHOP_KERNEL_ERROR"


# Validation


class ValidationError(WorkshopKernelError):
    """Input rejected before any write was attempted."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Authorization


class AuthorizationError(WorkshopKernelError):
    """Base exception for permission failures."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedActorError(AuthorizationError):
    """Actor may not perform the requested action."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(self, actor_id: Any, action: str, reason: str):
        self.actor_id = str(actor_id)
        self.action = action
        self.reason = reason
        super().__init__(f"Actor {actor_id} may not {action}: {reason}")


# Profiles


class ProfileError(WorkshopKernelError):
    code: str = "PROFILE_ERROR"


class ProfileNotFoundError(ProfileError):
    code: str = "PROFILE_NOT_FOUND"

    def __init__(self, profile_id: Any):
        self.profile_id = str(profile_id)
        super().__init__(f"Profile not found: {profile_id}")


class InactiveProfileError(ProfileError):
    code: str = "INACTIVE_PROFILE"

    def __init__(self, profile_id: Any):
        self.profile_id = str(profile_id)
        super().__init__(f"Profile is not active: {profile_id}")


# Workflow


class WorkflowError(WorkshopKernelError):
    """Base exception for state machine violations."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """The requested action is not defined for the entity's current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, entity_id: Any, from_state: str, action: str):
        self.workflow = workflow
        self.entity_id = str(entity_id)
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"{workflow}: action '{action}' is not allowed from "
            f"'{from_state}' (entity {entity_id})"
        )


class InvalidWorkflowStatusError(WorkflowError):
    """A status value outside the fixed workflow domain was supplied."""

    code: str = "INVALID_WORKFLOW_STATUS"

    def __init__(self, status: Any):
        self.status = str(status)
        super().__init__(f"Unknown workflow status: {status!r}")


class ApprovalRequiredError(WorkflowError):
    """Repairs cannot be completed before the customer approved them."""

    code: str = "APPROVAL_REQUIRED"

    def __init__(self, bike_id: Any, status: str):
        self.bike_id = str(bike_id)
        self.status = status
        super().__init__(
            f"Bike {bike_id} is in '{status}'; repairs can only be completed "
            "once the bike is ready for repair"
        )


class ChecklistIncompleteError(WorkflowError):
    """Finishing a bike with active checklist items still open."""

    code: str = "CHECKLIST_INCOMPLETE"

    def __init__(self, bike_id: Any, missing_item_ids: Sequence[Any]):
        self.bike_id = str(bike_id)
        self.missing_item_ids = [str(i) for i in missing_item_ids]
        super().__init__(
            f"Bike {bike_id} has {len(self.missing_item_ids)} open checklist item(s)"
        )


# Bikes


class BikeError(WorkshopKernelError):
    code: str = "BIKE_ERROR"


class BikeNotFoundError(BikeError):
    code: str = "BIKE_NOT_FOUND"

    def __init__(self, bike_id: Any):
        self.bike_id = str(bike_id)
        super().__init__(f"Bike not found: {bike_id}")


class DuplicateFrameNumberError(BikeError):
    code: str = "DUPLICATE_FRAME_NUMBER"

    def __init__(self, frame_number: str):
        self.frame_number = frame_number
        super().__init__(f"Frame number already registered: {frame_number}")


class InactiveBikeError(BikeError):
    """A finished bike was referenced where an active bike is required."""

    code: str = "INACTIVE_BIKE"

    def __init__(self, bike_id: Any):
        self.bike_id = str(bike_id)
        super().__init__(f"Bike is already finished: {bike_id}")


class ChecklistItemNotFoundError(BikeError):
    code: str = "CHECKLIST_ITEM_NOT_FOUND"

    def __init__(self, item_id: Any):
        self.item_id = str(item_id)
        super().__init__(f"Checklist item not found: {item_id}")


class CallRecordNotFoundError(BikeError):
    code: str = "CALL_RECORD_NOT_FOUND"

    def __init__(self, call_id: Any):
        self.call_id = str(call_id)
        super().__init__(f"Call record not found: {call_id}")


class CallStatusNotFoundError(BikeError):
    code: str = "CALL_STATUS_NOT_FOUND"

    def __init__(self, call_status_id: Any):
        self.call_status_id = str(call_status_id)
        super().__init__(f"Call status not found: {call_status_id}")


# Work registrations


class RegistrationError(WorkshopKernelError):
    code: str = "REGISTRATION_ERROR"


class RegistrationNotFoundError(RegistrationError):
    code: str = "REGISTRATION_NOT_FOUND"

    def __init__(self, registration_id: Any):
        self.registration_id = str(registration_id)
        super().__init__(f"Work registration not found: {registration_id}")


class RegistrationCompletedError(RegistrationError):
    """Completed registrations are history and cannot be deleted."""

    code: str = "REGISTRATION_COMPLETED"

    def __init__(self, registration_id: Any):
        self.registration_id = str(registration_id)
        super().__init__(
            f"Work registration {registration_id} is completed and cannot be deleted"
        )


# FOH tasks


class TaskError(WorkshopKernelError):
    code: str = "TASK_ERROR"


class TaskNotFoundError(TaskError):
    code: str = "TASK_NOT_FOUND"

    def __init__(self, task_id: Any):
        self.task_id = str(task_id)
        super().__init__(f"Task not found: {task_id}")


class TaskRejectedError(TaskError):
    code: str = "TASK_REJECTED"

    def __init__(self, task_id: Any):
        self.task_id = str(task_id)
        super().__init__(f"Task {task_id} was rejected")


class TaskCompletedError(TaskError):
    code: str = "TASK_COMPLETED"

    def __init__(self, task_id: Any):
        self.task_id = str(task_id)
        super().__init__(f"Task {task_id} is already completed")


# Inventory


class InventoryError(WorkshopKernelError):
    code: str = "INVENTORY_ERROR"


class InventoryItemNotFoundError(InventoryError):
    code: str = "INVENTORY_ITEM_NOT_FOUND"

    def __init__(self, item_id: Any):
        self.item_id = str(item_id)
        super().__init__(f"Inventory item not found: {item_id}")


class InventoryGroupNotFoundError(InventoryError):
    code: str = "INVENTORY_GROUP_NOT_FOUND"

    def __init__(self, group_id: Any):
        self.group_id = str(group_id)
        super().__init__(f"Inventory group not found: {group_id}")


class RepairTypeNotFoundError(InventoryError):
    code: str = "REPAIR_TYPE_NOT_FOUND"

    def __init__(self, repair_type_id: Any):
        self.repair_type_id = str(repair_type_id)
        super().__init__(f"Repair type not found: {repair_type_id}")


class DuplicateRepairTypeError(InventoryError):
    code: str = "DUPLICATE_REPAIR_TYPE"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Repair type already exists: {name}")


# Availability


class AvailabilityError(WorkshopKernelError):
    code: str = "AVAILABILITY_ERROR"


class AvailabilityNotFoundError(AvailabilityError):
    code: str = "AVAILABILITY_NOT_FOUND"

    def __init__(self, availability_id: Any):
        self.availability_id = str(availability_id)
        super().__init__(f"Availability request not found: {availability_id}")


class InvalidTimeRangeError(AvailabilityError):
    code: str = "INVALID_TIME_RANGE"

    def __init__(self, start_time: Any, end_time: Any):
        self.start_time = str(start_time)
        self.end_time = str(end_time)
        super().__init__(f"End time {end_time} must be after start time {start_time}")


class AvailabilityDecidedError(AvailabilityError):
    """The owner can only withdraw requests that are still pending."""

    code: str = "AVAILABILITY_DECIDED"

    def __init__(self, availability_id: Any, status: str):
        self.availability_id = str(availability_id)
        self.status = status
        super().__init__(f"Availability request {availability_id} is already {status}")


# Persistence


class PersistenceError(WorkshopKernelError):
    """The backing store refused or failed a write; nothing was committed."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")
