from fastapi import APIRouter
from rangers_portal.core.catalog import ORGANIZATION_TYPE_LABELS, TOPICS
from rangers_portal.core.config import get_settings

router = APIRouter(tags=["catalog"])


def _topics() -> list[dict]:
    return [
        {
            "id": topic_id,
            "title": topic["title"],
            "description": topic["description"],
            "modules": [{"key": key, **module} for key, module in topic["modules"].items()],
        }
        for topic_id, topic in TOPICS.items()
    ]


@router.get("/catalog/topics")
def list_topics_route():
    return _topics()


@router.get("/apply")
def apply_form_route():
    settings = get_settings()
    return {
        "topics": _topics(),
        "organization_types": [{"value": value, "label": label} for value, label in ORGANIZATION_TYPE_LABELS.items()],
        "max_document_bytes": settings.max_document_bytes,
        "max_image_bytes": settings.max_image_bytes,
    }
