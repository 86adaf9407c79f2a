"""
Tests for the core package itself.
"""

import subprocess
import sys
from pathlib import Path

import core

APP_DIR = Path(core.__file__).resolve().parent.parent


class TestCorePackage:
    def test_importing_core_does_not_load_drf(self):
        """
        `import core` runs no imports of its own.

        Why it matters: core is an installed app; pulling DRF views in while
        INSTALLED_APPS loads ties app loading to DRF's settings import.
        """
        code = "import sys, core; print('rest_framework' in sys.modules)"

        completed = subprocess.run(
            [sys.executable, "-c", code],
            cwd=APP_DIR,
            capture_output=True,
            text=True,
            check=True,
        )

        assert completed.stdout.strip() == "False"

    def test_nothing_is_re_exported(self):
        exported = {name for name in vars(core) if not name.startswith("_")}

        assert "BaseApplicationError" not in exported
        assert "ServiceResult" not in exported
        assert "application_exception_handler" not in exported
