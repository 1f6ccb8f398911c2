"""District search helpers.

The public Skyward login page is an ASP.NET form: a GET seeds the
``__EVENTVALIDATION``/``__VIEWSTATE`` tokens and the list of states, a POST
with those tokens searches districts by state and name.
"""

from typing import List, Optional

import logging

import requests
from bs4 import BeautifulSoup

from skytools.client import random_user_agent
from skytools.errors import SkywardError
from skytools.models import SkywardDistrict, SkywardSearchState

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.skyward.com/Marketing/LoginPage.aspx"


def _input_value(soup: BeautifulSoup, element_id: str) -> str:
    element = soup.find(id=element_id)
    if element is None:
        raise SkywardError(f"District search page is missing {element_id}")
    return str(element.get("value", ""))


def _parse_states(html: str):
    soup = BeautifulSoup(html, "lxml")
    select = soup.find(id="ddlStates")
    states: List[SkywardSearchState] = []
    if select is not None:
        for option in select.find_all("option"):
            states.append(
                SkywardSearchState(
                    option.get_text(strip=True), str(option.get("value", ""))
                )
            )
    event_validation = _input_value(soup, "__EVENTVALIDATION")
    view_state = _input_value(soup, "__VIEWSTATE")
    return states, event_validation, view_state


def _parse_districts(html: str) -> List[SkywardDistrict]:
    soup = BeautifulSoup(html, "lxml")
    results = soup.select_one("div.login-flex-container.rowCount")
    if results is None:
        return []
    districts: List[SkywardDistrict] = []
    for item in results.select(".login-flex-item"):
        name = item.find("span")
        link = item.find("a")
        if name is None or link is None:
            continue
        districts.append(
            SkywardDistrict(name.get_text(strip=True), str(link.get("href", "")))
        )
    return districts


class DistrictSearcher:
    def __init__(self, session: Optional[requests.Session] = None, timeout=30):
        self._timeout = timeout
        self._event_validation: Optional[str] = None
        self._view_state: Optional[str] = None
        self.states: List[SkywardSearchState] = []
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": random_user_agent()})
        self.session = session

    def load_states(self) -> List[SkywardSearchState]:
        response = self.session.get(SEARCH_URL, timeout=self._timeout)
        if response.status_code != 200:
            raise SkywardError(
                f"District search page returned HTTP {response.status_code}"
            )
        states, event_validation, view_state = _parse_states(response.text)
        self.states = states
        self._event_validation = event_validation
        self._view_state = view_state
        logger.info(f"Loaded {len(states)} district search states")
        return states

    def search(self, state_code: str, query: str) -> List[SkywardDistrict]:
        """Search districts of one state; ``state_code`` is a state's ``state_id``."""
        if self._event_validation is None or self._view_state is None:
            self.load_states()
        response = self.session.post(
            SEARCH_URL,
            data={
                "__EVENTVALIDATION": self._event_validation,
                "__VIEWSTATE": self._view_state,
                "btnSearch": "Search",
                "ddlStates": state_code,
                "txtSearch": query,
            },
            timeout=self._timeout,
        )
        response.raise_for_status()
        districts = _parse_districts(response.text)
        logger.info(f"District search {query!r} in state {state_code} -> {len(districts)} results")
        return districts
