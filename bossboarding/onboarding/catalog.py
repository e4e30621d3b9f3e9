"""
Onboarding stage and task catalog.

The catalog is fixed configuration: stages and tasks are frozen dataclasses
held in tuples, and the id lookups are read-only mappings. Per-customer state
only references tasks by id through ``taskStatuses`` / ``taskMetadata``.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from bossboarding.exceptions import InvalidRequestError, UnknownTaskError

logger = logging.getLogger(__name__)

TASK_STATUSES = ("not_started", "in_progress", "complete")
TEAMS = ("Sales", "Onboarding", "Operations", "Production")


@dataclass(frozen=True)
class OnboardingTask:
    id: str
    name: str
    team: Tuple[str, ...]
    priority: str  # low, medium, high
    description: Optional[str] = None
    customer_visible: bool = False


@dataclass(frozen=True)
class OnboardingStage:
    id: str
    name: str
    short_name: str
    tasks: Tuple[OnboardingTask, ...]

    @property
    def task_ids(self) -> Tuple[str, ...]:
        return tuple(task.id for task in self.tasks)


def _task(task_id, name, team, priority, description=None, customer_visible=False):
    return OnboardingTask(task_id, name, tuple(team), priority, description, customer_visible)


ONBOARDING_STAGES: Tuple[OnboardingStage, ...] = (
    OnboardingStage("contract_setup", "Contract & Setup", "Contract", (
        _task("confirm_data", "Confirm Data", ["Sales", "Onboarding"], "high", customer_visible=True),
        _task("send_contract", "Send Contract", ["Sales", "Onboarding"], "high", customer_visible=True),
        _task("confirm_contract_sent", "Confirm Contract Sent to Vicki", ["Operations", "Onboarding"], "high"),
        _task("send_welcome_packet", "Send Welcome Packet to Customer", ["Onboarding"], "high", customer_visible=True),
        _task("inventory_check", "Inventory Check", ["Operations"], "high"),
        _task("add_customer_cp", "Add Customer in CP", ["Operations"], "high"),
        _task("add_customer_salesforce", "Add Customer in Salesforce", ["Operations"], "high"),
        _task("add_contact_zoom", "Add Contact(s) to Zoom List", ["Operations"], "high"),
    )),
    OnboardingStage("internal_kickoff", "Internal Kickoff", "Kickoff", (
        _task("schedule_internal_kickoff", "Schedule Internal Kickoff Call", ["Onboarding"], "high"),
        _task("host_internal_call", "Host Internal Call", ["Onboarding"], "high"),
        _task("confirm_matterport_complete", "Confirm if Matterport is Complete", ["Onboarding"], "high", customer_visible=True),
        _task("send_matterport", "Send Matterport to Shop and Customer", ["Production", "Onboarding"], "high", customer_visible=True),
        _task("send_customer_kickoff_email", "Send Customer Kickoff Email", ["Onboarding"], "high", customer_visible=True),
        _task("confirm_date_of_call", "Confirm Date of Call", ["Onboarding"], "high", customer_visible=True),
        _task("hold_kickoff_call", "Hold Kickoff Call", ["Onboarding"], "high", customer_visible=True),
    )),
    OnboardingStage("planning_layout", "Planning & Layout", "Planning", (
        _task("review_matterport_machine_list", "Review Matterport and Machine List", ["Operations", "Onboarding"], "high", customer_visible=True),
        _task("draft_location_layout", "Draft Location Layout", ["Operations"], "high", customer_visible=True),
        _task("get_written_approval", "Get WRITTEN Customer Approval", ["Onboarding"], "high", customer_visible=True),
        _task("prepare_docs_production", "Prepare Docs for Production Submittal", ["Onboarding"], "high"),
        _task("prepare_work_order", "Prepare Work Order for Approval", ["Production"], "high"),
        _task("work_order_issued", "Work Order Issued", ["Production"], "high", customer_visible=True),
    )),
    OnboardingStage("production", "Production", "Production", (
        _task("mibs", "MIBs", ["Production"], "medium", "Dip, Flash, Label and Test MIBs for location"),
        _task("wire_harnesses", "Wire Harnesses", ["Production"], "medium", "Gather and/or Build Wire Harnesses"),
        _task("network_equipment", "Network Equipment & Board Set-Up", ["Production"], "medium"),
        _task("kiosk_setup", "Kiosk Setup (if applicable)", ["Production"], "medium"),
        _task("pos_setup", "POS Setup (if applicable)", ["Production"], "medium"),
        _task("add_machine_groups", "Add Machine Groups/Lists", ["Production"], "medium"),
        _task("enter_employee_info", "Enter Employee Information", ["Operations"], "medium", customer_visible=True),
        _task("add_products", "Add Products (if applicable)", ["Operations"], "medium"),
        _task("move_qrs", "Move QRs to Customer Folder", ["Operations"], "high"),
        _task("send_qrs_printer", "Send QRs to Printer", ["Production"], "high"),
    )),
    OnboardingStage("pre_ship", "Pre-Ship", "Pre-Ship", (
        _task("create_merchant_account", "Create Merchant Account in Copilot/Send Application", ["Operations"], "high", customer_visible=True),
        _task("send_login_credentials", "Send Login Credentials to Customer", ["Operations"], "medium", customer_visible=True),
        _task("confirm_dashboard_completion", "Confirm Dashboard Completion", ["Onboarding"], "high", customer_visible=True),
        _task("confirm_merchant_boarded", "Confirm Merchant Account Boarded", ["Onboarding"], "high", customer_visible=True),
        _task("onboarding_manager_communication", "Onboarding Manager Communication to Customer", ["Onboarding"], "high", customer_visible=True),
        _task("install_date_shared", "Install Date Shared with Company via Email", ["Onboarding"], "medium", customer_visible=True),
        _task("travel_arrangements", "Travel Arrangements", ["Onboarding"], "high"),
    )),
    OnboardingStage("shipment", "Shipment", "Shipment", (
        _task("shipment_review_checklist", "Perform Shipment Review Checklist", ["Production", "Operations", "Onboarding"], "high"),
        _task("shipment_triggered", "Shipment Triggered", ["Production", "Operations"], "high", customer_visible=True),
        _task("tracking_sent", "Tracking Sent to Customer", ["Onboarding"], "high", customer_visible=True),
    )),
    OnboardingStage("installation", "Installation", "Install", (
        _task("pre_install_walkthrough", "Pre-Install Walk-through and Testing", ["Operations", "Onboarding"], "high", customer_visible=True),
        _task("install_network_board", "Install Network Board", ["Operations", "Onboarding"], "medium"),
        _task("install_broadcasting_mibs", "Install Broadcasting MIBs", ["Operations", "Onboarding"], "medium"),
        _task("install_washer_mibs", "Install Washer MIBs", ["Operations", "Onboarding"], "medium"),
        _task("test_washers", "Test Washers", ["Operations", "Onboarding"], "high", customer_visible=True),
        _task("install_dryer_mibs", "Install Dryer MIBs", ["Operations", "Onboarding"], "medium"),
        _task("test_dryers", "Test Dryers", ["Operations", "Onboarding"], "high", customer_visible=True),
        _task("install_kiosk", "Install Kiosk (if applicable)", ["Operations", "Onboarding"], "medium"),
        _task("complete_post_install_checklist", "Complete Post-Install Checklist", ["Operations", "Onboarding"], "high", customer_visible=True),
        _task("provide_training", "Provide Training", ["Operations", "Onboarding"], "high", customer_visible=True),
        _task("post_install_walkthrough", "Do Post-Install Walkthrough w/ Owner", ["Operations", "Onboarding"], "high", customer_visible=True),
    )),
    OnboardingStage("post_go_live", "Post Go-Live", "Go-Live", (
        _task("tlb_installation", "TLB Installation", ["Onboarding"], "high", customer_visible=True),
        _task("cloudwork_pro", "CloudworkPro", ["Onboarding"], "high"),
        _task("add_pin_maps", "Add Pin in Conference Room Map & Google Maps", ["Onboarding"], "low"),
        _task("upload_matterport_google", "Upload Matterport to Google Maps", ["Sales"], "high"),
        _task("two_three_week_checkin", "2-3 Week Check-In", ["Onboarding"], "high", customer_visible=True),
    )),
)

STAGES_BY_ID: Mapping[str, OnboardingStage] = MappingProxyType(
    {stage.id: stage for stage in ONBOARDING_STAGES}
)
TASKS_BY_ID: Mapping[str, OnboardingTask] = MappingProxyType(
    {task.id: task for stage in ONBOARDING_STAGES for task in stage.tasks}
)
STAGE_OF_TASK: Mapping[str, str] = MappingProxyType(
    {task.id: stage.id for stage in ONBOARDING_STAGES for task in stage.tasks}
)
STAGE_INDEX: Mapping[str, int] = MappingProxyType(
    {stage.id: i for i, stage in enumerate(ONBOARDING_STAGES)}
)

FIRST_STAGE_ID = ONBOARDING_STAGES[0].id


def get_stage(stage_id: str) -> Optional[OnboardingStage]:
    return STAGES_BY_ID.get(stage_id)


def total_task_count() -> int:
    return len(TASKS_BY_ID)


def customer_visible_tasks() -> Tuple[OnboardingTask, ...]:
    return tuple(task for stage in ONBOARDING_STAGES for task in stage.tasks if task.customer_visible)


def default_task_statuses() -> Dict[str, str]:
    """Status map for a new customer: every catalog task not started."""
    return {task_id: "not_started" for task_id in TASKS_BY_ID}


def unknown_task_ids(task_ids: Iterable[str]):
    return {task_id for task_id in task_ids if task_id not in TASKS_BY_ID}


def validate_task_statuses(task_statuses: Mapping[str, str]) -> Dict[str, str]:
    """
    Validate a task status map at the API boundary.

    Raises UnknownTaskError when any key is not a catalog task id, and
    InvalidRequestError for a status outside TASK_STATUSES.
    """
    unknown = unknown_task_ids(task_statuses)
    if unknown:
        raise UnknownTaskError(unknown)

    for task_id, status in task_statuses.items():
        if status not in TASK_STATUSES:
            raise InvalidRequestError(f"Invalid status '{status}' for task {task_id}")

    return dict(task_statuses)


def known_task_statuses(task_statuses: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Drop ids that are not in the catalog, logging what was ignored."""
    if not task_statuses:
        return {}

    unknown = unknown_task_ids(task_statuses)
    if unknown:
        logger.warning(f"Ignoring unknown task ids in status map: {sorted(unknown)}")

    return {task_id: status for task_id, status in task_statuses.items() if task_id not in unknown}
