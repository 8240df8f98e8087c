"""
pytest-bdd step definitions.

Import everything into the module that calls ``scenarios()`` so the step
fixtures are visible to the generated tests::

    from dynamodb_record_steps.steps import *  # noqa: F401, F403
"""

from .step_definitions import *  # noqa: F401, F403
