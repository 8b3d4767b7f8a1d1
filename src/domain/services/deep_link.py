"""Client route paths for notification targets."""


def build_deep_link(entity_type: str, entity_id: str, matter_id: str | None = None) -> str:
    """Path a client should open for the entity behind a notification.

    Comments link to their parent matter, tasks carry the matter as a query
    parameter, and anything unrecognized falls back to ``/home``.
    """
    if entity_type == "comment" and matter_id:
        return f"/cases/details?caseId={matter_id}"
    if entity_type in ("case", "matter"):
        return f"/cases/details?caseId={entity_id}"
    if entity_type == "task":
        query = f"&caseId={matter_id}" if matter_id else ""
        return f"/tasks/details?taskId={entity_id}{query}"
    if entity_type == "document":
        return f"/documents/details/{entity_id}"
    if entity_type == "client":
        return f"/clients/details?clientId={entity_id}"
    return "/home"
