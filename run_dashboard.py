#!/usr/bin/env python3
"""Direct launcher for the Gemini Finance app.

Runs ``streamlit run`` on the package's dashboard module with the project
root on ``sys.path``.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
app_path = project_root / "gemini_finance" / "dashboard.py"

if __name__ == "__main__":
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    subprocess.run([sys.executable, "-m", "streamlit", "run", str(app_path)], env=env)
