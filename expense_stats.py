"""
Spending statistics and charts
Aggregates a user's expenses by category and by month
"""
import io
from typing import Dict, List

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

CHART_KINDS = ("by_category", "by_month")
CHART_COLORS = ["#0066CC", "#3385D6", "#66A3E0", "#99C2EB", "#CCE0F5", "#E6F3FF"]


def expenses_frame(expenses) -> pd.DataFrame:
    """DataFrame with one row per expense (date, category, amount)"""
    df = pd.DataFrame(
        [{"date": e.date, "category": e.category, "amount": float(e.amount)} for e in expenses],
        columns=["date", "category", "amount"],
    )
    if not df.empty:
        df["date"] = pd.to_datetime(df["date"])
    return df


def by_category(df: pd.DataFrame) -> List[Dict]:
    if df.empty:
        return []
    grouped = df.groupby("category")["amount"].agg(["sum", "count"]).reset_index()
    grouped.columns = ["category", "total", "count"]
    grouped = grouped.sort_values(["total", "category"], ascending=[False, True])
    return [
        {"category": row["category"], "total": round(float(row["total"]), 2), "count": int(row["count"])}
        for row in grouped.to_dict("records")
    ]


def by_month(df: pd.DataFrame) -> List[Dict]:
    if df.empty:
        return []
    months = df["date"].dt.to_period("M")
    grouped = df.groupby(months)["amount"].agg(["sum", "count"]).sort_index()
    return [
        {"month": str(period), "total": round(float(row["sum"]), 2), "count": int(row["count"])}
        for period, row in grouped.iterrows()
    ]


def summarize(expenses) -> Dict:
    df = expenses_frame(expenses)
    total = round(float(df["amount"].sum()), 2) if not df.empty else 0.0
    return {
        "totalAmount": total,
        "totalExpenses": int(len(df)),
        "byCategory": by_category(df),
        "byMonth": by_month(df),
    }


def render_chart(expenses, kind) -> io.BytesIO:
    """PNG chart of the expenses; ``kind`` is one of CHART_KINDS"""
    if kind not in CHART_KINDS:
        raise ValueError(f"Unknown chart kind: {kind}")

    df = expenses_frame(expenses)
    fig, ax = plt.subplots(figsize=(8, 6))
    try:
        if df.empty:
            ax.text(0.5, 0.5, "No data", ha="center", va="center")
            ax.axis("off")
        elif kind == "by_category":
            rows = by_category(df)
            ax.pie(
                [r["total"] for r in rows],
                labels=[r["category"] for r in rows],
                colors=CHART_COLORS,
                autopct="%1.0f%%",
                startangle=90,
            )
            ax.set_title("Spending by Category", fontsize=14, fontweight="bold")
            ax.axis("equal")
        else:
            rows = by_month(df)
            labels = [r["month"] for r in rows]
            bars = ax.bar(labels, [r["total"] for r in rows], color=CHART_COLORS[0])
            ax.set_ylabel("Amount")
            ax.set_title("Spending by Month", fontsize=14, fontweight="bold")
            for bar in bars:
                height = bar.get_height()
                ax.text(bar.get_x() + bar.get_width() / 2.0, height, f"{height:.0f}", ha="center", va="bottom")
            plt.setp(ax.get_xticklabels(), rotation=45, ha="right")

        fig.tight_layout()
        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        buf.seek(0)
        return buf
    finally:
        plt.close(fig)


def export_frame(expenses) -> pd.DataFrame:
    """Expenses in the same column layout the CSV import accepts"""
    return pd.DataFrame(
        [
            {
                "amount": f"{e.amount:.2f}",
                "description": e.description,
                "category": e.category,
                "paymentMethod": e.payment_method,
                "date": e.date.isoformat(),
            }
            for e in expenses
        ],
        columns=["amount", "description", "category", "paymentMethod", "date"],
    )
