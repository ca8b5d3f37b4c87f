# listing_watch/scrapers/vacancies_parser.py

"""Parser for the board's server-rendered ``/work/vacancies`` page."""

from listing_watch.scrapers.base_parser import BaseParser


class VacanciesParser(BaseParser):
    """Parser for vacancy listings.

    Each vacancy is a ``table.result``: the header row carries the
    company nickname and a ``"City, 28 авг."`` date label, the body
    row carries the title link, a ``p.division`` category line and the
    salary cell.
    """

    def __init__(self, base_url: str = "https://3ddd.ru") -> None:
        super().__init__("vacancies", base_url)

    def _selectors(self) -> dict[str, str]:
        return {
            "block": "table.result",
            # Category links in p.division must not be taken for the title
            "link": "tbody tr td.desc p:not(.division) a",
            "price": "tbody tr td.price",
            "date": "thead tr th div .date",
        }
