from __future__ import annotations

from typing import Any, Dict, FrozenSet

import numpy as np
import pandas as pd

from timesheets.charts import client_mix_chart, client_pareto_chart, internal_clients_chart, to_vega_spec
from timesheets.filters import FilterState, filters_to_dict
from timesheets.mapping import INTERNAL_COMPANIES
from timesheets.overtime import round_to_quarter


PARETO_COLUMNS = ["rank", "Company", "hours", "cumulative_pct"]


def client_pareto(
    rows: pd.DataFrame,
    top_n: int = 20,
    internal_companies: FrozenSet[str] = INTERNAL_COMPANIES,
) -> pd.DataFrame:
    """Billable hours per external client, largest first, with the running share of the total."""
    if rows.empty:
        return pd.DataFrame(columns=PARETO_COLUMNS)
    billable = rows[rows["is_billable"].astype(bool)]
    out = billable.groupby("Company")["Hours"].sum().reset_index().rename(columns={"Hours": "hours"})
    out = out[~out["Company"].isin(internal_companies)]
    if out.empty:
        return pd.DataFrame(columns=PARETO_COLUMNS)

    out["hours"] = round_to_quarter(out["hours"])
    out = out.sort_values(["hours", "Company"], ascending=[False, True]).reset_index(drop=True)
    total = float(out["hours"].sum())
    cumulative = out["hours"].cumsum() / total * 100 if total else out["hours"] * 0.0
    out["cumulative_pct"] = np.floor(cumulative * 10 + 0.5) / 10
    out.insert(0, "rank", out.index + 1)
    return out[PARETO_COLUMNS].head(top_n)


def top_internal_clients(rows: pd.DataFrame) -> pd.DataFrame:
    if rows.empty:
        return pd.DataFrame(columns=["Company", "hours"])
    internal = rows[rows["is_internal"].astype(bool)]
    out = internal.groupby("Company")["Hours"].sum().reset_index().rename(columns={"Hours": "hours"})
    out["hours"] = round_to_quarter(out["hours"])
    return out.sort_values(["hours", "Company"], ascending=[False, True]).reset_index(drop=True)


def client_mix(rows: pd.DataFrame, category: str, top_n: int = 10) -> pd.DataFrame:
    """Long table of external client hours split by ``category``, for the ``top_n`` busiest clients.

    ``share`` is the category's percentage of that client's hours.
    """
    cols = ["Company", category, "hours", "client_hours", "share"]
    if rows.empty:
        return pd.DataFrame(columns=cols)
    external = rows[~rows["is_internal"].astype(bool)]
    if external.empty:
        return pd.DataFrame(columns=cols)

    mix = external.groupby(["Company", category])["Hours"].sum().reset_index().rename(columns={"Hours": "hours"})
    mix["client_hours"] = mix.groupby("Company")["hours"].transform("sum")
    mix["share"] = mix["hours"] / mix["client_hours"] * 100

    busiest = (
        mix.drop_duplicates("Company")
        .sort_values(["client_hours", "Company"], ascending=[False, True])
        .head(top_n)["Company"]
    )
    mix = mix[mix["Company"].isin(busiest)].sort_values(
        ["client_hours", "Company", category], ascending=[False, True, True]
    )
    mix["hours"] = round_to_quarter(mix["hours"])
    mix["client_hours"] = round_to_quarter(mix["client_hours"])
    return mix[cols].reset_index(drop=True)


def client_work_type_mix(rows: pd.DataFrame, top_n: int = 10) -> pd.DataFrame:
    return client_mix(rows, "board_work_type", top_n)


def client_project_type_mix(rows: pd.DataFrame, top_n: int = 10) -> pd.DataFrame:
    return client_mix(rows, "Project Type", top_n)


def compute_clients(filters: FilterState, ctx: Dict[str, Any], *, top_n: int = 10) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    if rows.empty:
        return {"filters": filters_to_dict(filters), "pareto": [], "internal": [], "work_type_mix": [], "project_type_mix": [], "charts": {}}

    pareto = client_pareto(rows)
    internal = top_internal_clients(rows)
    work_type_mix = client_work_type_mix(rows, top_n)
    project_type_mix = client_project_type_mix(rows, top_n)

    charts: Dict[str, Any] = {}
    if not pareto.empty:
        charts["client_pareto"] = to_vega_spec(client_pareto_chart(pareto))
    if not internal.empty:
        charts["internal_clients"] = to_vega_spec(internal_clients_chart(internal))
    if not work_type_mix.empty:
        charts["work_type_mix"] = to_vega_spec(client_mix_chart(work_type_mix, "board_work_type", normalize=True))
        charts["project_type_mix"] = to_vega_spec(client_mix_chart(project_type_mix, "Project Type"))

    return {
        "filters": filters_to_dict(filters),
        "pareto": pareto.to_dict(orient="records"),
        "internal": internal.to_dict(orient="records"),
        "work_type_mix": work_type_mix.to_dict(orient="records"),
        "project_type_mix": project_type_mix.to_dict(orient="records"),
        "charts": charts,
    }
