from langgraph.graph import StateGraph, START, END
from loguru import logger

from graph.state import SyncState
from graph.nodes.capture import capture
from graph.nodes.resolve import resolve
from graph.nodes.enrich import enrich
from graph.nodes.record import record
from graph.nodes.notify import notify
from tools.accounts import AccountResolver
from tools.activities import ActivityRecorder
from tools.airmeet import AirmeetClient
from tools.notifications import NotificationService
from tools.scoring import CTA_CLICK, EVENT_ENTRY


def build_workflow(
    airmeet: AirmeetClient,
    resolver: AccountResolver,
    recorder: ActivityRecorder,
    notifier: NotificationService,
):
    """Build the webhook sync workflow: capture → resolve → enrich → record → [notify]."""
    workflow = StateGraph(SyncState)

    # Add nodes
    workflow.add_node("capture", capture)
    workflow.add_node("resolve", lambda state: resolve(state, resolver))
    workflow.add_node("enrich", lambda state: enrich(state, airmeet))
    workflow.add_node("record", lambda state: record(state, recorder))
    workflow.add_node("notify", lambda state: notify(state, notifier))

    # Add edges
    workflow.add_edge(START, "capture")
    workflow.add_edge("capture", "resolve")
    workflow.add_edge("resolve", "enrich")
    workflow.add_edge("enrich", "record")

    # Only first deliveries of engagement activities on a known account alert the owner
    def branch_decision(state: SyncState) -> str:
        resolution = state.get("resolution")
        if state.get("replayed"):
            logger.info(f"Replayed {state.get('kind')} webhook, owner already notified")
            return "end"
        if state.get("kind") in (EVENT_ENTRY, CTA_CLICK) and resolution and resolution.account_id:
            return "notify"
        logger.info(f"Skipping owner notification for {state.get('kind')} webhook")
        return "end"

    workflow.add_conditional_edges("record", branch_decision, {"notify": "notify", "end": END})
    workflow.add_edge("notify", END)

    return workflow.compile()
