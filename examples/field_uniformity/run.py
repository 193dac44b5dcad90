"""Run the field uniformity matrix without the CLI."""
from pathlib import Path

from vermatrix import bootstrap
from vermatrix.plan import PlanOptions, load_plan, run_plan


def main() -> int:
    bootstrap()
    plan = load_plan(Path(__file__).with_name("plan.yaml"))
    return run_plan(plan, PlanOptions())


if __name__ == "__main__":
    raise SystemExit(main())
