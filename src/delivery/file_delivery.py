"""
File report channel
"""
import json
from pathlib import Path
from typing import List

from core.entities import BUCKETS, EvidenceItem
from delivery.base import ReportChannel
from workflows.opportunity_hunt import HuntResult

EVIDENCE_PER_BUCKET = 5


class FileReport(ReportChannel):
    name = "file"

    def __init__(self, output_dir: str = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def deliver(
        self,
        *,
        report_date: str,
        result: HuntResult,
    ) -> None:
        base = self.output_dir / f"{result.topic.id}_{report_date}"

        json_path = base.with_suffix(".json")
        md_path = base.with_suffix(".md")

        json_path.write_text(
            json.dumps(
                {
                    "topic": result.topic.model_dump(),
                    "date": report_date,
                    "ideas": [idea.model_dump() for idea in result.ideas],
                    "evidence": result.evidence.to_dict(),
                },
                indent=2,
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )

        md_path.write_text("\n".join(self._markdown(report_date, result)), encoding="utf-8")

    def _markdown(self, report_date: str, result: HuntResult) -> List[str]:
        evidence = result.evidence
        md_lines = [
            f"# {result.topic.name} ({report_date})",
            "",
            f"{evidence.total_items} evidence items from {len(evidence.sources_used)} sources: "
            + ", ".join(evidence.sources_used),
            "",
            "## Ideas",
            "",
        ]

        if not result.ideas:
            md_lines.append("_No ideas scored above the threshold._")
            md_lines.append("")

        for idea in result.ideas:
            md_lines.append(f"### {idea.title} ({idea.potential_score:.0f}/100)")
            md_lines.append(idea.problem)
            if idea.jtbd:
                md_lines.append(f"**Job to be done:** {idea.jtbd}")
            if idea.friction_severity:
                md_lines.append(f"**Friction:** {idea.friction_severity}")
            if idea.evidence_source:
                md_lines.append(f"**Evidence:** {idea.evidence_source}")
            md_lines.append("")

        md_lines.append("## Evidence")
        md_lines.append("")
        for bucket in BUCKETS:
            items = evidence.bucket(bucket)
            md_lines.append(f"### {bucket.replace('_', ' ').title()} ({len(items)})")
            md_lines.extend(self._evidence_line(item) for item in items[:EVIDENCE_PER_BUCKET])
            md_lines.append("")

        return md_lines

    @staticmethod
    def _evidence_line(item: EvidenceItem) -> str:
        return f"- [{item.title or item.id}]({item.url}) ({item.source}, {item.score:.0f})"
