"""Slack notifications -- webhook client, Block Kit builders, button payload parsing."""

from src.rld_compliance.notifications.interactions import SlackAction, parse_slack_action
from src.rld_compliance.notifications.slack import SlackNotifier

__all__ = [
    "SlackAction",
    "SlackNotifier",
    "parse_slack_action",
]
