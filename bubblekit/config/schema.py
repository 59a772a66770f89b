"""Configuration schema for the assistant."""

from __future__ import annotations

import platform
from datetime import datetime

from pydantic import BaseModel, Field


class SafetySettingConfig(BaseModel):
    """One Gemini harm-category threshold, e.g. HARM_CATEGORY_HARASSMENT / BLOCK_ONLY_HIGH."""

    category: str
    threshold: str


class GeminiConfig(BaseModel):
    api_key: str = ""
    model: str = "models/gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    system_instruction: str | None = None
    safety: list[SafetySettingConfig] = Field(default_factory=list)
    timeout_seconds: float = 30.0
    temperature: float = 0.3


class AgentProfile(BaseModel):
    name: str = "AIBubble Assistant"
    purpose: str = "Chat and optional voice assistant embedded in a host application."
    audience: str = "End-users of the host application"


class HostContext(BaseModel):
    app_name: str = ""
    app_version: str = ""
    user_id: str = ""
    user_locale: str = "en_US"
    user_timezone: str = Field(
        default_factory=lambda: str(datetime.now().astimezone().tzinfo or "UTC")
    )
    device: str = Field(default_factory=platform.machine)
    os_version: str = Field(default_factory=platform.platform)


class ConversationStyle(BaseModel):
    tone: str = "friendly, concise, professional"
    avoid: list[str] = Field(default_factory=lambda: ["jargon unless asked", "overly long replies"])
    emojis: str = "minimal"
    links: str = "only if helpful; include short explanation"


class SafetyAndPrivacy(BaseModel):
    no_sensitive_storage: bool = True
    pii_policy: str = (
        "Do not ask for or store PII. If user shares PII, use it only for the "
        "current turn and do not retain."
    )
    medical_legal_financial_disclaimer: str = (
        "Add light disclaimers when providing guidance in these domains."
    )


class ConversationPrefs(BaseModel):
    style: ConversationStyle = Field(default_factory=ConversationStyle)
    markdown: bool = True
    safety_and_privacy: SafetyAndPrivacy = Field(default_factory=SafetyAndPrivacy)


class VoiceMode(BaseModel):
    enabled: bool = False
    barge_in: bool = True
    tts_allowed: bool = True
    summarize_long_outputs: bool = True


class Behavior(BaseModel):
    general: list[str] = Field(default_factory=lambda: [
        "Be a helpful, accurate assistant inside a small floating UI bubble.",
        "Prefer short answers first; offer to expand if needed.",
        "If the user request is ambiguous, ask a brief clarifying question.",
    ])
    error_recovery: list[str] = Field(default_factory=lambda: [
        "If a tool/API call fails, explain briefly and propose a next step.",
        "Never invent results when a tool is required; state the limitation and offer alternatives.",
    ])
    sensitive_topics: list[str] = Field(default_factory=lambda: [
        "Avoid generating unsafe content. Refuse with a brief reason and offer a safe alternative.",
    ])


class ToolUse(BaseModel):
    policy: list[str] = Field(default_factory=lambda: [
        "Use tools/functions only when they materially help.",
        "Return function arguments in JSON strictly matching the provided schema.",
        "Do not include explanatory prose inside function arguments.",
    ])


class RefusalPolicy(BaseModel):
    policy: str = (
        "If a request is unsafe or disallowed, provide a brief explanation and a "
        "safe alternative. Do not call tools in this case."
    )


class Config(BaseModel):
    """Root configuration for an assistant instance."""

    agent_profile: AgentProfile = Field(default_factory=AgentProfile)
    host_context: HostContext = Field(default_factory=HostContext)
    conversation_prefs: ConversationPrefs = Field(default_factory=ConversationPrefs)
    voice_mode: VoiceMode = Field(default_factory=VoiceMode)
    behavior: Behavior = Field(default_factory=Behavior)
    tool_use: ToolUse = Field(default_factory=ToolUse)
    refusals: RefusalPolicy = Field(default_factory=RefusalPolicy)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)

    def build_system_instruction(self) -> str:
        """Render the fixed system instruction sent with every gateway call.

        An explicit ``gemini.system_instruction`` is used as the opening
        paragraph; the profile, host context and policies follow.
        """
        p = self.agent_profile
        h = self.host_context
        style = self.conversation_prefs.style
        lines: list[str] = []
        if self.gemini.system_instruction:
            lines += [self.gemini.system_instruction.strip(), ""]
        lines += [
            f"You are {p.name}. {p.purpose}",
            f"Audience: {p.audience}.",
        ]
        if h.app_name:
            version = f" {h.app_version}" if h.app_version else ""
            lines.append(f"Host app: {h.app_name}{version} (locale {h.user_locale}, timezone {h.user_timezone}).")
        lines.append(f"Tone: {style.tone}. Emojis: {style.emojis}. Avoid: {', '.join(style.avoid)}.")
        if not self.conversation_prefs.markdown:
            lines.append("Reply in plain text without markdown.")
        lines.append(self.conversation_prefs.safety_and_privacy.pii_policy)

        for title, rules in (
            ("Behavior", self.behavior.general),
            ("Error recovery", self.behavior.error_recovery),
            ("Sensitive topics", self.behavior.sensitive_topics),
            ("Tool use", self.tool_use.policy),
        ):
            if rules:
                lines.append("")
                lines.append(f"{title}:")
                lines.extend(f"- {r}" for r in rules)

        lines += ["", self.refusals.policy]
        return "\n".join(lines)
