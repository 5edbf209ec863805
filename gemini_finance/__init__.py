"""Top-level package for Gemini Finance.

A personal-finance tracker: transactions are kept per user, aggregated
by month and shown in a Streamlit app with a Gemini-powered advisor.
The primary modules are:

* ``store`` / ``storage`` – the transaction collection and its JSON file
* ``aggregator`` – monthly totals, daily series and category breakdown
* ``calendar_view`` – per-day expense intensity for the calendar
* ``report`` – currency formatting and the text summary
* ``advisor`` – the Gemini collaborator
* ``dashboard`` – the Streamlit app that ties everything together

To run the app from the command line you can execute:

```bash
streamlit run gemini_finance/dashboard.py
```
"""

from . import aggregator  # noqa: F401  # re-exported for convenience
from . import calendar_view  # noqa: F401  # re-exported for convenience
from . import report  # noqa: F401  # re-exported for convenience
from .aggregator import MonthlySnapshot, SnapshotCache, aggregate_month  # noqa: F401
from .calendar_view import build_calendar  # noqa: F401
from .models import Category, ExpenseType, Transaction, TransactionType  # noqa: F401
from .store import TransactionStore  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "aggregator",
    "calendar_view",
    "report",
    "MonthlySnapshot",
    "SnapshotCache",
    "aggregate_month",
    "build_calendar",
    "Category",
    "ExpenseType",
    "Transaction",
    "TransactionType",
    "TransactionStore",
]
