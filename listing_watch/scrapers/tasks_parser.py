# listing_watch/scrapers/tasks_parser.py

"""Parser for the board's server-rendered ``/work/tasks`` page."""

from listing_watch.scrapers.base_parser import BaseParser


class TasksParser(BaseParser):
    """Parser for freelance task (order) listings."""

    def __init__(self, base_url: str = "https://3ddd.ru") -> None:
        super().__init__("tasks", base_url)

    def _selectors(self) -> dict[str, str]:
        return {
            "block": "table.result",
            "link": "tbody tr td.desc p a",
            "price": "tbody tr td.price",
            "date": "thead tr th div .date",
        }
