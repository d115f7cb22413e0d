from __future__ import annotations


def run_url(hostname: str, organization: str, workspace: str, run_id: str) -> str:
    """Browser URL of a run, for users to investigate it."""
    return f"https://{hostname}/app/{organization}/{workspace}/runs/{run_id}"
