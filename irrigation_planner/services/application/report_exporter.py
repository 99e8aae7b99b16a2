"""
Application service: Text and JSON reports of a plan.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import json
import math

from irrigation_planner.domain.models import Project, ProjectSummary

SQUARE_METERS_PER_RAI = 1600.0


def format_distance(meters: float) -> str:
    """Human readable distance in cm, m or km."""
    if math.isnan(meters) or meters < 0:
        return "0 m"
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    if meters >= 1:
        return f"{meters:.1f} m"
    return f"{meters * 100:.1f} cm"


def format_area(square_meters: float) -> str:
    """Human readable area in cm², m² or rai."""
    if math.isnan(square_meters) or square_meters < 0:
        return "0 m²"
    if square_meters >= SQUARE_METERS_PER_RAI:
        return f"{square_meters / SQUARE_METERS_PER_RAI:.2f} rai"
    if square_meters >= 1:
        return f"{square_meters:.1f} m²"
    return f"{square_meters * 10000:.0f} cm²"


def format_flow(liters_per_minute: float) -> str:
    return f"{liters_per_minute:.1f} L/min"


class ReportExporter:
    """Renders a project and its statistics for download."""

    def to_text(
        self,
        project: Project,
        summary: ProjectSummary,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """
        Plain-text summary report.

        Args:
            project: Project being reported
            summary: Statistics computed for the project
            generated_at: Report timestamp, defaults to now (UTC)

        Returns:
            Multi-line report
        """
        generated_at = generated_at or datetime.now(timezone.utc)
        lines: List[str] = [
            "Garden irrigation plan summary",
            f"Date: {generated_at.date().isoformat()}",
            "=" * 40,
            "",
            "Overview:",
            f"- Total area: {format_area(summary.total_area_m2)}",
            f"- Irrigable area: {format_area(summary.usable_area_m2)}",
            f"- Zones: {summary.total_zones}",
            f"- Sprinklers: {summary.total_sprinklers}"
            + (f" ({summary.unassigned_sprinklers} unassigned)" if summary.unassigned_sprinklers else ""),
            f"- Total flow rate: {format_flow(summary.total_flow_rate_lpm)}",
            f"- Coverage (upper bound): {summary.coverage_percentage:.1f}%",
            f"- Coverage (overlap-aware): {summary.union_coverage_percentage:.1f}%",
            "",
            "Pipes:",
            f"- Main pipe: {format_distance(summary.main_pipe_length_m)}",
            f"- Sub-main pipes: {format_distance(summary.submain_length_m)}"
            f" (longest {format_distance(summary.longest_submain_m)})",
            f"- Lateral pipes: {format_distance(summary.lateral_length_m)}"
            f" (longest {format_distance(summary.longest_lateral_m)})",
            f"- Total: {format_distance(summary.total_pipe_length_m)}",
            f"- Longest path from source: {format_distance(summary.longest_path_from_source_m)}",
            f"- Junctions: {summary.junctions.total_junctions}",
        ]
        for ways, count in summary.junctions.junctions_by_ways.items():
            lines.append(f"  - {ways}-way: {count}")

        lines += ["", "Zones:"]
        for index, zone in enumerate(summary.zones, start=1):
            lines += [
                f"{index}. {zone.zone_name or zone.zone_id} ({zone.zone_type.value})",
                f"   - Area: {format_area(zone.area_m2)}",
                f"   - Sprinklers: {zone.sprinkler_count}",
            ]
            if zone.sprinkler_types:
                lines.append(f"   - Types: {', '.join(zone.sprinkler_types)}"
                             f" (mean radius {zone.average_radius_m:.1f} m)")
            if zone.sprinkler_count:
                lines += [
                    f"   - Sub-main: {format_distance(zone.submain_length_m)}",
                    f"   - Laterals: {format_distance(zone.lateral_length_m)}",
                    f"   - Coverage: {zone.coverage_percentage:.1f}%",
                ]

        if project.water_source is not None:
            lines += ["", f"Water source: {project.water_source.type.value} at "
                          f"{project.water_source.position.lat:.6f}, {project.water_source.position.lng:.6f}"]

        return "\n".join(lines) + "\n"

    def to_dict(
        self,
        project: Project,
        summary: ProjectSummary,
        generated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        generated_at = generated_at or datetime.now(timezone.utc)
        return {
            "project": project.model_dump(mode="json"),
            "statistics": summary.model_dump(mode="json"),
            "export_date": generated_at.isoformat(),
        }

    def to_json(
        self,
        project: Project,
        summary: ProjectSummary,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """Project, statistics and export timestamp as indented JSON."""
        return json.dumps(self.to_dict(project, summary, generated_at), indent=2, ensure_ascii=False)
