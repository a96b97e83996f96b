import logging

from fastapi import Request

from carebase.db.client import SqlTableClient

logger = logging.getLogger(__name__)


async def log_audit(
    client: SqlTableClient,
    action: str,
    resource: str,
    resource_id: str = None,
    details: str = None,
    request: Request = None,
) -> None:
    """Write an ``audit_logs`` row; a failed write is logged, never raised."""
    ip = request.client.host if request and request.client else None
    user_agent = request.headers.get("user-agent") if request else None

    result = await client.table("audit_logs").insert({
        "action": action,
        "resource": resource,
        "resource_id": str(resource_id) if resource_id else None,
        "details": details,
        "ip_address": ip,
        "user_agent": user_agent,
    }).execute()
    if result.error:
        logger.warning("Audit write failed for %s %s %s: %s", action, resource, resource_id, result.error)
