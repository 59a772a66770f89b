"""Assistant loop: the turn-processing engine."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Iterable

from loguru import logger

from bubblekit.agent.confirmation import (
    ConfirmationDecision,
    build_confirmation_prompt,
    classify_locally,
    parse_model_decision,
)
from bubblekit.agent.intents import NAVIGATE_TOOL_NAME, AppIntent, IntentHandling, IntentRegistry
from bubblekit.agent.models import (
    AssistantMode,
    AssistantResponse,
    ConversationMessage,
    FunctionCall,
    MessageRole,
    PendingIntent,
    SafetyInfo,
)
from bubblekit.agent.presentation import generate_follow_ups, generate_title, offline_reply, speech_text
from bubblekit.agent.tools.base import FunctionResult
from bubblekit.agent.tools.registry import ToolRegistry
from bubblekit.config.schema import Config, GeminiConfig
from bubblekit.providers.base import (
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    GatewayBlockedError,
    GatewayError,
    GenerateContentResponse,
    GenerationConfig,
    ModelGateway,
    Part,
    Tool,
    ToolConfig,
)
from bubblekit.providers.gemini_provider import GeminiProvider

ERROR_TEXT = "Sorry, I encountered an error. Please try again."
ERROR_FOLLOW_UPS = ["Try again", "What else can you help with?"]
EMPTY_REPLY_TEXT = "Sorry, I didn't get an answer for that. Could you rephrase?"
CLARIFY_TEXT = "I'm not sure if you want to proceed. Please say 'yes' to continue or 'no' to cancel."
CANCEL_TEXT = "No problem! I'm here if you need anything else."
NAVIGATION_FOLLOW_UPS = ["Yes, navigate", "No, cancel"]

Observer = Callable[["AssistantLoop"], None]


class AssistantLoop:
    """
    The assistant loop owns one conversation.

    Per user turn it:
    1. Sends history plus tool declarations to the model gateway
    2. Picks the model's tool call, a local intent match, or plain text
    3. Executes a tool once and asks the model to summarize the result,
       or parks a navigation intent until the user confirms it
    4. Appends the exchange to history and publishes the response

    While an intent is pending, the next utterance is treated as the
    yes/no answer rather than a new turn. ``process_input`` calls are
    serialized; the loop is not meant to be shared across event loops.
    """

    def __init__(
        self,
        config: Config | None = None,
        gateway: ModelGateway | None = None,
        tools: ToolRegistry | None = None,
        intents: IntentRegistry | None = None,
        intent_handler: IntentHandling | None = None,
    ):
        self.config = config or Config()
        self.gateway = gateway
        self.tools = tools if tools is not None else ToolRegistry.create_default()
        self.intents = intents if intents is not None else IntentRegistry(intent_handler)
        if intent_handler is not None and intents is not None:
            self.intents.intent_handler = intent_handler

        self.current_mode = AssistantMode.TEXT
        self._is_active = False
        self._is_processing = False
        self._history: list[ConversationMessage] = []
        self._last_response: AssistantResponse | None = None
        self._pending: PendingIntent | None = None
        self._confirming: PendingIntent | None = None
        self._observers: list[Observer] = []
        self._turn_lock = asyncio.Lock()
        self._retired_gateways: list[Any] = []
        self._closing: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def conversation_history(self) -> tuple[ConversationMessage, ...]:
        return tuple(self._history)

    @property
    def last_response(self) -> AssistantResponse | None:
        return self._last_response

    @property
    def pending_intent(self) -> PendingIntent | None:
        return self._pending

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call ``observer(loop)`` after every state change. Returns an unsubscribe function."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.exception("Observer raised during state notification")

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def attach_gateway(self, gateway: ModelGateway) -> None:
        """Use ``gateway`` for later turns. A replaced gateway is closed."""
        previous, self.gateway = self.gateway, gateway
        if previous is not None and previous is not gateway:
            self._retire_gateway(previous)

    def attach_gemini(self, gemini: GeminiConfig) -> None:
        """Attach a Gemini client built from ``gemini``."""
        self.attach_gateway(GeminiProvider(gemini))

    def _retire_gateway(self, gateway: Any) -> None:
        close = getattr(gateway, "aclose", None)
        if close is None:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to close on now; aclose() finishes the job
            self._retired_gateways.append(gateway)
            return
        task = running.create_task(close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def aclose(self) -> None:
        """Close the attached gateway and any it replaced."""
        gateways = [*self._retired_gateways, self.gateway]
        self._retired_gateways.clear()
        for gateway in gateways:
            close = getattr(gateway, "aclose", None)
            if close is not None:
                await close()
        if self._closing:
            await asyncio.gather(*self._closing)

    async def __aenter__(self) -> AssistantLoop:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def register_intent(self, intent: AppIntent) -> None:
        self.intents.register(intent)

    def register_intents(self, intents: Iterable[AppIntent]) -> None:
        self.intents.register_all(intents)

    # ------------------------------------------------------------------
    # Host-facing mutators
    # ------------------------------------------------------------------

    def toggle_active(self) -> None:
        self._is_active = not self._is_active
        self._notify()

    def collapse_chat(self) -> None:
        self._is_active = False
        self._notify()

    def clear_conversation(self) -> None:
        self._history.clear()
        self._last_response = None
        self._notify()

    async def process_input(self, text: str) -> AssistantResponse | None:
        """
        Handle one user utterance.

        Returns the response stored in ``last_response``, or None for blank
        input. Model and network failures never escape: they become an
        apologetic response.
        """
        if not text or not text.strip():
            return None

        async with self._turn_lock:
            if self._pending is not None:
                await self._handle_confirmation_reply(text)
                return self._last_response

            self._append(MessageRole.USER, text)
            self._set_processing(True)
            try:
                response = await self._generate_response(text)
            except GatewayError as e:
                logger.error(f"Model call failed: {e}")
                self._last_response = self._error_response(e)
                return self._last_response
            finally:
                self._set_processing(False)

            self._last_response = response
            self._append(MessageRole.ASSISTANT, response.text)
            return response

    async def request_navigation(
        self,
        intent_id: str,
        entities: dict[str, Any] | None = None,
    ) -> AssistantResponse | None:
        """Ask the user to confirm navigating to a registered intent.

        Replaces any intent already pending. Returns None for an unknown id.
        """
        intent = self.intents.get(intent_id)
        if intent is None:
            logger.warning(f"Cannot request navigation, unknown intent: {intent_id}")
            return None
        response = self._request_confirmation(intent, {"intent_id": intent_id, **(entities or {})})
        self._last_response = response
        self._append(MessageRole.ASSISTANT, response.text)
        return response

    async def confirm_intent(self) -> None:
        """Run the pending intent's callback once, then clear it. No-op when nothing is pending."""
        pending = self._pending
        if pending is None or pending is self._confirming:
            return

        text = f"Perfect! Taking you to {pending.intent.title}..."
        self._last_response = self._build_response(text, title="Navigating", follow_up=[])
        self._append(MessageRole.ASSISTANT, text)
        self.collapse_chat()

        self._confirming = pending
        try:
            await self.intents.run(pending.intent, dict(pending.entities))
        except Exception:
            logger.exception(f"Intent handler failed: {pending.intent.id}")
        finally:
            self._confirming = None
            if self._pending is pending:
                self._pending = None
            self._notify()

    def cancel_intent(self) -> None:
        """Drop the pending intent without navigating. The chat stays open."""
        if self._pending is None:
            return
        logger.info(f"Navigation cancelled: {self._pending.intent.id}")
        self._pending = None
        self._last_response = self._build_response(CANCEL_TEXT, title="Cancelled", follow_up=[])
        self._append(MessageRole.ASSISTANT, CANCEL_TEXT)

    # ------------------------------------------------------------------
    # Two-phase generation
    # ------------------------------------------------------------------

    async def _generate_response(self, text: str) -> AssistantResponse:
        if self.gateway is None:
            return self._offline_response(text)

        contents = self._history_contents()
        tools = self._tool_payload()
        tool_config = ToolConfig.auto()
        generation = GenerationConfig(temperature=self.config.gemini.temperature)

        first = await self.gateway.generate(
            contents, tools=tools, tool_config=tool_config, generation=generation,
        )

        call = first.first_function_call()
        if call is not None:
            args_str = json.dumps(call.args, ensure_ascii=False)
            logger.info(f"Tool call: {call.name}({args_str[:200]})")
            if call.name == NAVIGATE_TOOL_NAME:
                response = self._resolve_navigation(call)
                if response is not None:
                    return response
                return self._text_response(text, first)
            return await self._run_tool(text, call, contents, tools, tool_config, generation)

        match = self.intents.match_locally(text)
        if match is not None:
            return self._request_confirmation(
                match.intent, {"intent_id": match.intent.id, **match.entities},
            )

        return self._text_response(text, first)

    def _resolve_navigation(self, call: FunctionCallPart) -> AssistantResponse | None:
        intent_id = call.args.get("intent_id")
        intent = self.intents.get(intent_id) if isinstance(intent_id, str) else None
        if intent is None:
            result = FunctionResult.not_found(str(intent_id))
            logger.warning(f"Model asked for unknown intent: {result.error}")
            return None
        return self._request_confirmation(intent, dict(call.args))

    async def _run_tool(
        self,
        text: str,
        call: FunctionCallPart,
        contents: list[Content],
        tools: list[Tool] | None,
        tool_config: ToolConfig,
        generation: GenerationConfig,
    ) -> AssistantResponse:
        arguments = dict(call.args)
        result = await self.tools.call(call.name, arguments)

        echo = [
            Content(role="model", parts=[Part(function_call=call)]),
            Content(role="user", parts=[Part(function_response=FunctionResponsePart(
                name=call.name,
                response=result.to_response(),
            ))]),
        ]
        follow = await self.gateway.generate(
            contents + echo, tools=tools, tool_config=tool_config, generation=generation,
        )
        return self._build_response(
            follow.text or EMPTY_REPLY_TEXT,
            input_text=text,
            mode=AssistantMode.FUNCTION_CALL,
            function_call=FunctionCall(name=call.name, arguments=arguments),
        )

    def _request_confirmation(self, intent: AppIntent, entities: dict[str, Any]) -> AssistantResponse:
        if self._pending is not None:
            logger.debug(f"Replacing pending intent {self._pending.intent.id} with {intent.id}")
        self._pending = PendingIntent(intent=intent, entities=entities)
        logger.info(f"Awaiting confirmation for intent: {intent.id}")
        return self._build_response(
            f"Would you like me to navigate to '{intent.title}'?",
            title="Navigation Request",
            follow_up=list(NAVIGATION_FOLLOW_UPS),
            function_call=FunctionCall(name=NAVIGATE_TOOL_NAME, arguments={"intent_id": intent.id}),
        )

    def _text_response(self, text: str, response: GenerateContentResponse) -> AssistantResponse:
        return self._build_response(
            response.text or EMPTY_REPLY_TEXT, input_text=text, mode=self.current_mode,
        )

    def _offline_response(self, text: str) -> AssistantResponse:
        match = self.intents.match_locally(text)
        if match is not None:
            return self._request_confirmation(
                match.intent, {"intent_id": match.intent.id, **match.entities},
            )
        return self._build_response(offline_reply(text), input_text=text, mode=self.current_mode)

    # ------------------------------------------------------------------
    # Confirmation sub-dialog
    # ------------------------------------------------------------------

    async def _handle_confirmation_reply(self, text: str) -> None:
        pending = self._pending
        if pending is None:
            return
        self._append(MessageRole.USER, text)

        self._set_processing(True)
        try:
            decision = await self._interpret_confirmation(pending.intent, text)
        finally:
            self._set_processing(False)

        if self._pending is not pending or pending is self._confirming:
            logger.debug(f"Intent {pending.intent.id} resolved while classifying the reply")
            return
        logger.info(f"Confirmation reply for {pending.intent.id}: {decision.value}")
        if decision is ConfirmationDecision.YES:
            await self.confirm_intent()
        elif decision is ConfirmationDecision.NO:
            self.cancel_intent()
        else:
            self._last_response = self._build_response(
                CLARIFY_TEXT, title="Clarification Needed", follow_up=[],
            )
            self._append(MessageRole.ASSISTANT, CLARIFY_TEXT)

    async def _interpret_confirmation(self, intent: AppIntent, reply: str) -> ConfirmationDecision:
        if self.gateway is None:
            return classify_locally(reply)
        prompt = build_confirmation_prompt(intent.title, reply)
        try:
            response = await self.gateway.generate([Content.from_text("user", prompt)])
        except GatewayError as e:
            logger.warning(f"Confirmation classification failed, using keywords: {e}")
            return classify_locally(reply)
        return parse_model_decision(response.text)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _append(self, role: MessageRole, content: str) -> None:
        self._history.append(ConversationMessage(role=role, content=content))
        self._notify()

    def _set_processing(self, value: bool) -> None:
        self._is_processing = value
        self._notify()

    def _history_contents(self) -> list[Content]:
        return [
            Content.from_text("user" if m.role is MessageRole.USER else "model", m.content)
            for m in self._history
        ]

    def _tool_payload(self) -> list[Tool] | None:
        declarations = [
            d for d in self.tools.get_declarations() if d.name != NAVIGATE_TOOL_NAME
        ]
        navigation = self.intents.tool_declaration()
        if navigation is not None:
            declarations.append(navigation)
        if not declarations:
            return None
        return [Tool(function_declarations=declarations)]

    def _build_response(
        self,
        text: str,
        *,
        input_text: str | None = None,
        title: str | None = None,
        follow_up: list[str] | None = None,
        mode: AssistantMode = AssistantMode.TEXT,
        function_call: FunctionCall | None = None,
        safety: SafetyInfo | None = None,
    ) -> AssistantResponse:
        if input_text is not None:
            title = title or generate_title(input_text)
            follow_up = follow_up if follow_up is not None else generate_follow_ups(input_text)
        return AssistantResponse(
            mode=mode,
            title=title,
            text=text,
            speak=speech_text(text) if self.config.voice_mode.enabled else "",
            follow_up=follow_up or [],
            function_call=function_call,
            safety=safety or SafetyInfo(),
        )

    def _error_response(self, error: GatewayError) -> AssistantResponse:
        safety = SafetyInfo()
        if isinstance(error, GatewayBlockedError):
            safety = SafetyInfo(refusal=True, refusal_reason=error.reason)
        return self._build_response(
            ERROR_TEXT, title="Error", follow_up=list(ERROR_FOLLOW_UPS), safety=safety,
        )
