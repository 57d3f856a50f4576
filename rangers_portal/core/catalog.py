from typing import Any

from rangers_portal.models.enums import OrganizationType

TOPICS: dict[int, dict[str, Any]] = {
    1: {
        "title": "Introduction to Climate Diplomacy",
        "description": "Build foundational knowledge of climate science and diplomacy",
        "modules": {
            "1.1": {
                "title": "Climate Change Fundamentals",
                "description": "Understanding the scientific basis of climate change and its impacts",
            },
            "1.2": {
                "title": "Evolution of Global Climate Policy",
                "description": "Tracing the development of international climate policy frameworks",
            },
            "1.3": {
                "title": "Key Milestones (Rio, Kyoto, Paris)",
                "description": "Analyzing major climate agreements and their significance",
            },
        },
    },
    2: {
        "title": "Global Climate Governance",
        "description": "Understand international climate institutions and frameworks",
        "modules": {
            "2.1": {
                "title": "UNFCCC Framework",
                "description": "Deep dive into the United Nations Framework Convention on Climate Change",
            },
            "2.2": {
                "title": "Multilateral Environmental Agreements",
                "description": "Exploring various international environmental treaties and protocols",
            },
            "2.3": {
                "title": "Role of IPCC, UNEP, WMO",
                "description": "Understanding key international climate organizations and their functions",
            },
        },
    },
    3: {
        "title": "National & Regional Climate Policies",
        "description": "Analyze national climate actions and regional dynamics",
        "modules": {
            "3.1": {
                "title": "Nationally Determined Contributions (NDCs)",
                "description": "Understanding country commitments under the Paris Agreement",
            },
            "3.2": {
                "title": "Regional Cooperation (EU, Africa, MENA)",
                "description": "Examining regional climate initiatives and cooperation mechanisms",
            },
            "3.3": {
                "title": "Subnational and Local Climate Policies",
                "description": "Exploring city and regional climate action and governance",
            },
        },
    },
    4: {
        "title": "Climate Negotiation Strategies",
        "description": "Master negotiation tactics and coalition building",
        "modules": {
            "4.1": {
                "title": "Negotiation Theories",
                "description": "Fundamental principles and approaches to international negotiation",
            },
            "4.2": {
                "title": "Multilateral Dynamics",
                "description": "Understanding complex multi-party negotiation processes",
            },
            "4.3": {
                "title": "Coalition Politics (G77, AOSIS, BASIC)",
                "description": "Analyzing negotiation blocs and alliance strategies",
            },
        },
    },
    5: {
        "title": "Climate Finance",
        "description": "Understand finance systems and proposal development",
        "modules": {
            "5.1": {
                "title": "Climate Finance Sources",
                "description": "Exploring funding mechanisms and financial institutions",
            },
            "5.2": {
                "title": "Economic Instruments",
                "description": "Understanding carbon markets, taxes, and economic policy tools",
            },
            "5.3": {
                "title": "Proposal Design & Reporting",
                "description": "Developing effective climate finance proposals and reporting frameworks",
            },
        },
    },
}

ORGANIZATION_TYPE_LABELS: dict[str, str] = {
    OrganizationType.NGO.value: "NGO",
    OrganizationType.IGO.value: "IGO",
    OrganizationType.GOVERNMENTAL.value: "Governmental",
    OrganizationType.PRIVATE.value: "Private Sector",
    OrganizationType.UNIVERSITY.value: "University",
}


def get_topic(topic_id: int | None) -> dict[str, Any] | None:
    if topic_id is None:
        return None
    return TOPICS.get(topic_id)


def module_choices(topic_id: int | None) -> list[str]:
    topic = get_topic(topic_id)
    if topic is None:
        return []
    return list(topic["modules"].keys())


def module_belongs_to_topic(topic_id: int | None, module_key: str | None) -> bool:
    return module_key in module_choices(topic_id)


def topic_label(topic_id: Any) -> str:
    try:
        topic = TOPICS.get(int(topic_id))
    except (TypeError, ValueError):
        topic = None
    return topic["title"] if topic else f"Topic {topic_id}"


def organization_type_label(value: Any) -> str:
    if isinstance(value, OrganizationType):
        value = value.value
    return ORGANIZATION_TYPE_LABELS.get(value, value)
