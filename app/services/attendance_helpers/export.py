# /smart-lms-backend/app/services/attendance_helpers/export.py

import csv
from datetime import datetime
from typing import Dict, Optional

import pandas as pd

from .reporting import format_duration

CSV_COLUMNS = [
    "Student Name", "Roll Number", "Email", "Status", "First Join Time",
    "Last Leave Time", "Total Duration", "Attendance %", "Sessions", "Rejoins", "Late",
]


def _format_time(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S UTC") if value else "N/A"


def meeting_report_to_csv(report: Dict) -> str:
    """Renders the rows of a meeting report (see `build_meeting_report`) as a fully quoted CSV string."""
    export_data = [
        {
            "Student Name": row["student"]["name"],
            "Roll Number": row["student"].get("roll_number") or "N/A",
            "Email": row["student"]["email"],
            "Status": row["status"],
            "First Join Time": _format_time(row["first_join_time"]),
            "Last Leave Time": _format_time(row["last_leave_time"]),
            "Total Duration": format_duration(row["total_duration"]),
            "Attendance %": f"{row['attendance_percentage']}%",
            "Sessions": row["session_count"],
            "Rejoins": row["rejoin_count"],
            "Late": "Yes" if row["is_late"] else "No",
        }
        for row in report["attendances"]
    ]

    df = pd.DataFrame(export_data) if export_data else pd.DataFrame(columns=CSV_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL)
