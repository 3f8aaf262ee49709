"""
Behave environment configuration

This file is run before and after test scenarios to set up and tear down
the test environment.
"""

import os
import sys

# Add project root to Python path so the anchoring package imports uninstalled
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from anchoring.logging_config import GlobalIndent  # noqa: E402


def before_scenario(context, scenario):
    """Run before each scenario"""
    GlobalIndent.reset()
    context.range = None
    context.error = None
