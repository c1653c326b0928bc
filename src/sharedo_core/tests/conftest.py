# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import copy
import logging

import pytest

from sharedo_core.cli.config import SharedoConfig

BASE_WORKFLOW = {
    "systemName": "matter-intake",
    "name": "Matter Intake",
    "description": "Routes a new matter to review",
    "overrideNotifications": False,
    "exceptionNotifications": True,
    "variables": [
        {"systemName": "matterId", "name": "Matter", "isInputVariable": True},
    ],
    "steps": [
        {
            "systemName": "start",
            "name": "Start",
            "isStart": True,
            "actions": [
                {
                    "id": "a1",
                    "actionSystemName": "startStep",
                    "name": "Begin",
                    "config": {"now": True},
                    "connections": {"execute": {"step": "mid"}},
                }
            ],
        },
        {
            "systemName": "mid",
            "name": "Mid",
            "actions": [
                {
                    "id": "a2",
                    "actionSystemName": "createNotification",
                    "name": "Notify reviewer",
                    "config": {
                        "notificationTypeSystemName": "review-request",
                        "title": "Review",
                        "recipientVariable": "matterId",
                    },
                    "connections": {"complete": {"step": "end"}},
                }
            ],
        },
        {"systemName": "end", "name": "End", "isEnd": True, "actions": []},
    ],
}


@pytest.fixture
def workflow_dict():
    return copy.deepcopy(BASE_WORKFLOW)


@pytest.fixture
def config():
    return SharedoConfig()


@pytest.fixture(autouse=True)
def _reset_package_loggers():
    yield
    for name in ("sharedo_core", "sharedo_common"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
