"""
Robot Processor
===============

The single entry point a transport uses to get a robot reply.

Processing flow:
    Incoming message
         │
         ▼
    Route (content only) ──► robot + response mode
         │
         ▼
    Snapshot history from the store (once, at call start)
         │
         ▼
    ┌── response mode ──┐
    │                   │
    immediate        multi_part
    │                   │
    ▼                   ▼
    reply            reply now, supplements later
    │                   │
    ▼                   ▼
    Store reply      Store reply, store and forward each supplement

Failures never escape: an unregistered robot yields "Robot service not
available at this time." and anything else yields "Sorry, I encountered
an error processing your request: <message>".

Two concurrent calls against the same conversation each work from their
own snapshot; neither sees the other's reply.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from buddybot.memory.messages import (
    ConversationMessage,
    CreateMessageDto,
    MessageContent,
    MessageType,
    UserRole,
)
from buddybot.memory.store import ConversationStore
from buddybot.robots.base import Robot
from buddybot.robots.registry import RobotRegistry
from buddybot.robots.router import ResponseMode, RobotRouter
from buddybot.utils.logger import Logger

logger = Logger("Processor")


ROBOT_UNAVAILABLE_TEXT = "Robot service not available at this time."

DelayedListener = Callable[[ConversationMessage], Any | Awaitable[Any]]


@dataclass
class ProcessingRequest:
    """
    One inbound message to answer.

    Attributes:
        content: The message text (used for routing and as the prompt)
        conversation_id: Conversation to read history from and write to
        from_user_id: Id of the sender, if known
        from_role: Role of the sender
        message_type: Stored message kind
        message: The already-persisted message, when the transport stored it
    """
    content: str
    conversation_id: str
    from_user_id: str | None = None
    from_role: UserRole = UserRole.CUSTOMER
    message_type: MessageType = MessageType.TEXT
    message: ConversationMessage | None = None


@dataclass
class ProcessingResponse:
    """
    The outcome of process_message.

    Attributes:
        response: Text to show the user (a reply or an error description)
        robot_name: Robot chosen by the router
        response_mode: Mode chosen by the router
        processed: False when no robot produced the reply
        error: Error message, when processing failed
        message: The stored robot reply, when there is one
    """
    response: str
    robot_name: str | None = None
    response_mode: ResponseMode | None = None
    processed: bool = True
    error: str | None = None
    message: ConversationMessage | None = None


class RobotProcessor:
    """
    Routes messages to robots and persists their replies.

    Example:
        processor = RobotProcessor(registry, store, history_limit=20)

        result = await processor.process_message(
            ProcessingRequest(content="formId: 123 is broken", conversation_id="C1"),
            on_delayed=post_to_thread,
        )
        print(result.response)
    """

    def __init__(
        self,
        registry: RobotRegistry,
        store: ConversationStore,
        history_limit: int = 20,
        router: RobotRouter | None = None,
    ):
        self.registry = registry
        self.store = store
        self.history_limit = history_limit
        self.router = router or RobotRouter(registry)

    async def process_message(
        self,
        request: ProcessingRequest,
        on_delayed: DelayedListener | None = None,
    ) -> ProcessingResponse:
        """
        Answer one message.

        Args:
            request: The inbound message
            on_delayed: Called with each stored multi-part supplement

        Returns:
            ProcessingResponse; never raises
        """
        log = logger.bind(conversation_id=request.conversation_id)
        decision = self.router.route(request.content)
        robot = decision.robot

        if robot is None:
            return ProcessingResponse(
                response=ROBOT_UNAVAILABLE_TEXT,
                robot_name=decision.robot_name,
                response_mode=decision.response_mode,
                processed=False,
            )

        log.info(
            f"Processing message with {robot.name}",
            {"mode": decision.response_mode.value, "rule": decision.rule_name},
        )

        try:
            history = await self.store.get_last_messages(request.conversation_id, self.history_limit)
            message = request.message or ConversationMessage.text(
                request.conversation_id,
                request.content,
                from_role=request.from_role,
                to_role=UserRole.ROBOT,
                message_type=request.message_type,
                author_user_id=request.from_user_id,
            )

            def get_history() -> list[ConversationMessage]:
                return history

            if decision.response_mode == ResponseMode.MULTI_PART:
                async def deliver(content: MessageContent) -> None:
                    stored = await self._store_reply(request, robot, content)
                    if on_delayed is not None:
                        result = on_delayed(stored)
                        if inspect.isawaitable(result):
                            await result

                content = await robot.accept_message_multi_part_response(message, deliver, get_history)
            else:
                content = await robot.accept_message_immediate_response(message, get_history)

            stored = await self._store_reply(request, robot, content)

        except Exception as e:
            log.error("Error processing message", e)
            return ProcessingResponse(
                response=f"Sorry, I encountered an error processing your request: {e}",
                robot_name=robot.name,
                response_mode=decision.response_mode,
                processed=False,
                error=str(e),
            )

        return ProcessingResponse(
            response=content.payload,
            robot_name=robot.name,
            response_mode=decision.response_mode,
            processed=True,
            message=stored,
        )

    async def _store_reply(
        self,
        request: ProcessingRequest,
        robot: Robot,
        content: MessageContent,
    ) -> ConversationMessage:
        return await self.store.create_message(CreateMessageDto(
            conversation_id=request.conversation_id,
            from_role=UserRole.ROBOT,
            to_role=request.from_role,
            content=content,
            message_type=MessageType.ROBOT,
            author_user_id=robot.name,
        ))

    async def wait_for_delayed(self) -> None:
        """Wait for all robots' outstanding multi-part supplements."""
        await self.registry.wait_for_delayed()
