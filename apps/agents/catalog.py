from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

# Evaluated in order; the first category with a matching keyword wins
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("Banking", ("bank", "emi", "loan", "paymitra", "payment")),
    ("Finance", ("finance", "investment", "wealth")),
    ("Healthcare", ("health", "doctor", "medical", "hospital", "clinic", "appointment")),
    ("Traffic", ("traffic", "challan", "e-challan", "echallan")),
    ("Municipal", ("municipal", "nmc", "mahapalika", "corporation", "civic", "lda")),
    ("Security", ("security", "cyber", "sentinel", "police")),
    ("Support", ("support", "customer", "service", "helpdesk")),
    ("Real Estate", ("real estate", "property", "realty")),
    ("Hospitality", ("hospitality", "hotel", "restaurant", "booking")),
    ("Environment", ("environment", "vasundhara", "eco", "green")),
    ("Technology", ("tech", "ai", "bot", "digital")),
    ("Education", ("education", "school", "learning", "training")),
    ("E-commerce", ("ecommerce", "shop", "store", "retail")),
    ("Travel", ("travel", "tourism", "booking", "trip")),
]
DEFAULT_CATEGORY = "General"

# (required keywords, description) matched against the agent name before the category fallback
NAME_DESCRIPTIONS: List[Tuple[Tuple[str, ...], str]] = [
    (("emi", "reminder"), "Automated EMI payment reminder and follow-up service"),
    (("banking", "agent"), "Banking assistant for account queries and transactions"),
    (("doctor", "appointment"), "Medical appointment scheduling and healthcare assistance"),
    (("traffic",), "Traffic e-challan information and payment assistance"),
    (("challan",), "Traffic e-challan information and payment assistance"),
    (("paymitra",), "Payment processing and financial transaction assistant"),
    (("cyber", "sentinel"), "Cybersecurity awareness and reporting assistant"),
    (("hospitality",), "Hospitality service and guest assistance agent"),
    (("real estate",), "Real estate property inquiry and consultation assistant"),
    (("nmc",), "Municipal services and civic complaint management"),
    (("mahapalika",), "Municipal services and civic complaint management"),
    (("vasundhara",), "Environmental services and sustainability assistant"),
    (("lda",), "Development authority services and information assistant"),
]

CATEGORY_DESCRIPTIONS: Dict[str, str] = {
    "Banking": "Banking and financial services assistant",
    "Finance": "Financial advisory and transaction assistant",
    "Healthcare": "Healthcare services and medical assistance",
    "Traffic": "Traffic management and violation assistance",
    "Municipal": "Municipal services and civic assistance",
    "Security": "Security and safety assistance service",
    "Support": "Customer support and service assistant",
    "Real Estate": "Real estate consultation and property assistance",
    "Hospitality": "Hospitality and guest services assistant",
    "Environment": "Environmental services and eco-assistance",
    "Technology": "Technology support and digital assistant",
    "Education": "Educational assistance and learning support",
    "E-commerce": "E-commerce and shopping assistance",
    "Travel": "Travel booking and tourism assistance",
}

LANGUAGE_LABELS: Dict[str, str] = {"en": "English (US)", "hi": "Hindi"}
DEFAULT_VOICE_LANGUAGE = "English (US)"

_PROMPT_PREFIX = re.compile(r"^(You are|You're|This is|Hello,?|Hi,?|Welcome,?)\s*", re.IGNORECASE)


def determine_agent_category(agent_name: str) -> str:
    name = (agent_name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def _gender_from_name(name: str) -> Optional[str]:
    if "female" in name:
        return "female"
    if "male" in name:
        return "male"
    return None


def _voice_prefix(agent_name: str) -> str:
    name = agent_name.lower()
    gender = _gender_from_name(name)
    if "hindi" in name:
        language = "Hindi-speaking "
    elif "english" in name and gender:
        language = "English-speaking "
    else:
        language = ""
    if gender:
        return f"{language}{gender} " if language else f"{gender.capitalize()} "
    return language


def generate_agent_description(agent_name: str, category: str) -> str:
    name = (agent_name or "").lower()
    prefix = _voice_prefix(agent_name or "")
    for keywords, description in NAME_DESCRIPTIONS:
        if all(keyword in name for keyword in keywords):
            return f"{prefix}{description}"
    template = CATEGORY_DESCRIPTIONS.get(category)
    if template:
        return f"{prefix}{template}"
    return f"{prefix}AI conversational assistant for {category.lower()} services"


def determine_voice_gender(voice: Optional[Dict[str, Any]], agent_name: str) -> str:
    """Best effort gender for an agent voice; voice labels win over the agent name."""
    name_gender = _gender_from_name((agent_name or "").lower()) or "neutral"
    if not voice:
        return name_gender

    labels = voice.get("labels") or {}
    if labels.get("gender"):
        return str(labels["gender"]).lower()

    haystacks = [
        str(labels.get("use_case") or "").lower(),
        str(voice.get("description") or "").lower(),
        str(voice.get("name") or "").lower(),
    ]
    if any("female" in text for text in haystacks):
        return "female"
    if any("male" in text for text in haystacks):
        return "male"
    return name_gender


def describe_from_prompt(prompt: Optional[str]) -> Optional[str]:
    """First meaningful sentence of a system prompt, or None if too short."""
    if not prompt:
        return None
    sentence = re.split(r"\.\s+", prompt, maxsplit=1)[0]
    sentence = _PROMPT_PREFIX.sub("", sentence).strip()
    if len(sentence) > 150:
        return sentence[:147] + "..."
    if len(sentence) > 20:
        return sentence
    return None


def agent_voice_id(agent: Dict[str, Any]) -> Optional[str]:
    config = agent.get("conversation_config") or {}
    first_message = (config.get("agent") or {}).get("first_message")
    if isinstance(first_message, dict) and first_message.get("voice_id"):
        return first_message["voice_id"]
    return (config.get("tts") or {}).get("voice_id")


def voice_language(agent: Dict[str, Any], voice: Optional[Dict[str, Any]]) -> str:
    language = DEFAULT_VOICE_LANGUAGE
    if voice and (voice.get("labels") or {}).get("language"):
        language = voice["labels"]["language"]
    agent_language = ((agent.get("conversation_config") or {}).get("agent") or {}).get("language")
    if agent_language:
        language = LANGUAGE_LABELS.get(agent_language, str(agent_language).upper())
    return language


def enrich_agent(agent: Dict[str, Any], voice: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    name = agent.get("name") or ""
    category = determine_agent_category(name)
    prompt = (((agent.get("conversation_config") or {}).get("agent") or {}).get("prompt") or {}).get("prompt")
    description = describe_from_prompt(prompt) or generate_agent_description(name, category)
    return {
        **agent,
        "category": category,
        "voiceGender": determine_voice_gender(voice, name),
        "voiceLanguage": voice_language(agent, voice),
        "description": description,
    }
