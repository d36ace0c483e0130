"""Use case: export a resolved ranking as CSV or shareable text."""

import csv

from music_memory.config import EXPORT_CSV_FILE, SHARE_TOP_N
from music_memory.usecases.resolve_ranking import ResolvedRanking


def share_text(ranking: ResolvedRanking, top_n: int = SHARE_TOP_N) -> str:
    session = ranking.session
    lines = [f"\U0001f3b5 My Top {session.content_type.plural_label} from {session.source.display_name} \U0001f3b5", ""]
    for rank, item in enumerate(ranking.items[:top_n], start=1):
        label = f"{item.title} - {item.subtitle}" if item.subtitle else item.title
        lines.append(f"#{rank}: {label}")
    lines.extend(["", "Ranked with Music Memory"])
    return "\n".join(lines)


class ExportRankingUseCase:

    def execute(self, ranking: ResolvedRanking, path: str = EXPORT_CSV_FILE) -> str:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["rank", "id", "title", "subtitle", "plays"])
            for rank, item in enumerate(ranking.items, start=1):
                writer.writerow([rank, item.id, item.title, item.subtitle, item.raw_metric])
        return path
