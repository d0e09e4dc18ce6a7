"""
Robot Registry
==============

Maps robot names to robot instances. The router looks robots up here by
name, so any object satisfying the Robot contract can be swapped in.

build_default_registry() wires the robots the application ships with:

    ChatRobotParrot       - echo robot, no credentials
    RobotChatAnthropic    - forms catalog + SSO/Sumo guidance
    SlackyAnthropicAgent  - full Slacky catalog + forms catalog
    RobotChatOpenAI       - same catalogs as the Slack agent (optional)

Robots whose provider key is missing are still registered; they log a
warning now and answer with a credential error when used.
"""

from buddybot.robots.anthropic_robots import RobotChatAnthropic, SlackyAnthropicAgent
from buddybot.robots.base import Robot
from buddybot.robots.openai_robots import RobotChatOpenAI
from buddybot.robots.parrot import ChatRobotParrot
from buddybot.robots.providers import AnthropicProvider, OpenAIProvider
from buddybot.tools import create_composite_tool_set
from buddybot.tools.form_tools import FormsApiClient, build_form_catalog
from buddybot.tools.slacky_tools import (
    SSO_AUTOFILL_ASSISTANCE,
    SUMO_LOGIC_QUERY,
    build_slacky_catalog,
)
from buddybot.utils.config import Config
from buddybot.utils.logger import Logger

logger = Logger("RobotRegistry")


class RobotRegistry:
    """
    Name -> robot mapping.

    Example:
        registry = RobotRegistry()
        registry.register(ChatRobotParrot())
        robot = registry.get("ChatRobotParrot")
    """

    def __init__(self):
        self._robots: dict[str, Robot] = {}

    def register(self, robot: Robot, overwrite: bool = False) -> None:
        """
        Register a robot under its name.

        Raises:
            ValueError: If the name is taken and overwrite is False
        """
        if robot.name in self._robots and not overwrite:
            raise ValueError(f"Robot with name '{robot.name}' already exists")

        replaced = robot.name in self._robots
        self._robots[robot.name] = robot
        logger.info(f"{'Updated' if replaced else 'Registered'} robot: {robot.name} v{robot.version}")

    def unregister(self, name: str) -> bool:
        """Remove a robot; returns False if it was not registered."""
        removed = self._robots.pop(name, None) is not None
        if removed:
            logger.info(f"Unregistered robot: {name}")
        return removed

    def get(self, name: str) -> Robot | None:
        return self._robots.get(name)

    def has(self, name: str) -> bool:
        return name in self._robots

    def names(self) -> list[str]:
        return list(self._robots)

    def all(self) -> list[Robot]:
        return list(self._robots.values())

    async def wait_for_delayed(self) -> None:
        """Wait for every robot's outstanding delayed deliveries."""
        for robot in self._robots.values():
            await robot.wait_for_delayed()

    def __len__(self) -> int:
        return len(self._robots)

    def __contains__(self, name: str) -> bool:
        return name in self._robots


def build_default_registry(
    config: Config,
    forms_client: FormsApiClient | None = None,
) -> RobotRegistry:
    """
    Build the registry the application runs with.

    Args:
        config: Application configuration
        forms_client: Optional forms API client (defaults to one built from config)
    """
    robot_config = config.robot

    slacky_catalog = build_slacky_catalog(robot_config.feedback_dir)
    form_catalog = build_form_catalog(
        forms_client or FormsApiClient(config.forms.token, config.forms.base_url)
    )

    form_robot_tools = create_composite_tool_set(
        form_catalog,
        slacky_catalog.subset(SUMO_LOGIC_QUERY, SSO_AUTOFILL_ASSISTANCE),
    )
    slack_robot_tools = create_composite_tool_set(slacky_catalog, form_catalog)

    def anthropic_provider() -> AnthropicProvider:
        return AnthropicProvider(
            config.anthropic.api_key,
            config.anthropic.model,
            max_tokens=config.anthropic.max_tokens,
        )

    registry = RobotRegistry()
    registry.register(ChatRobotParrot())
    registry.register(RobotChatAnthropic(
        anthropic_provider(),
        form_robot_tools,
        max_tool_rounds=robot_config.max_tool_rounds,
        follow_up_delay_seconds=robot_config.follow_up_delay_seconds,
    ))
    registry.register(SlackyAnthropicAgent(
        anthropic_provider(),
        slack_robot_tools,
        max_tool_rounds=robot_config.max_tool_rounds,
        follow_up_delay_seconds=robot_config.follow_up_delay_seconds,
    ))
    if robot_config.enable_openai_robot:
        registry.register(RobotChatOpenAI(
            OpenAIProvider(config.openai.api_key, config.openai.model),
            slack_robot_tools,
            max_tool_rounds=robot_config.max_tool_rounds,
            follow_up_delay_seconds=robot_config.follow_up_delay_seconds,
        ))

    logger.info(f"Initialized {len(registry)} robots", {"robots": registry.names()})
    return registry
