"""Top‑level package for the Budget Dashboard.

A YNAB4 budget viewer. The primary modules are:

* ``budget_grid`` – assembles the monthly budget grid from a snapshot
* ``classifier`` – hierarchical income and expense reports
* ``running_balance`` – account register with running balances
* ``selection`` – transactions behind a selected grid cell

To run the dashboard from the command line you can execute:

```bash
python run_budget_dashboard.py
```
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
