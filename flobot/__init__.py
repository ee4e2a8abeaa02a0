"""
Flobot

Chat bot runtime for Mattermost: a live websocket event stream dispatched
through an ordered middleware chain, then an ordered handler chain.

Usage:
    from flobot.common import load_config
    from flobot.instance import MattermostInstance
    from flobot.middleware import ignore_self
    from flobot.handlers import HelpHandler, TriggerHandler
"""

__version__ = "0.1.0"
