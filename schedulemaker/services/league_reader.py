"""
Reads league reference data (teams, prior standings, pre-fixed weeks) from
JSON files. The bundled league.json describes the 32-team league.
"""

import json
import os
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from schedulemaker.models import Team
from schedulemaker.core.config import LEAGUE_DATA_FILE, STARTING_POINT_FILE
from schedulemaker.core.logging_config import get_logger

logger = get_logger(__name__)


class LeagueReader:
    """
    Loads teams and standings for one league from a JSON document of the form
    {"teams": [{"id", "name", "conference", "division", "prior_rank"}, ...]}.
    """

    def __init__(self, data_file: Optional[str] = None, starting_point_file: Optional[str] = None):
        self.data_file = data_file or LEAGUE_DATA_FILE
        self.starting_point_file = starting_point_file or STARTING_POINT_FILE
        self._document = None

    def _load_document(self) -> Dict:
        if self._document is None:
            if not os.path.exists(self.data_file):
                raise FileNotFoundError(f"League data file not found: {self.data_file}")
            with open(self.data_file, "r", encoding="utf-8") as f:
                self._document = json.load(f)
        return self._document

    def load_teams(self) -> List[Team]:
        """
        Load all teams from the league file.

        Returns:
            List of Team objects in file order

        Raises:
            ValueError: If a team entry is missing a field or an id repeats
        """
        teams = []
        seen = set()
        for index, row in enumerate(self._load_document().get("teams", [])):
            try:
                team = Team(
                    id=str(row["id"]).strip(),
                    name=str(row.get("name", row["id"])).strip(),
                    conference=str(row["conference"]).strip(),
                    division=str(row["division"]).strip(),
                    prior_rank=int(row.get("prior_rank", 0)),
                )
            except KeyError as e:
                raise ValueError(f"Team entry {index} is missing field {e}")
            if team.id in seen:
                raise ValueError(f"Duplicate team id in league data: {team.id}")
            seen.add(team.id)
            teams.append(team)

        by_division = defaultdict(int)
        for team in teams:
            by_division[team.division] += 1
        logger.info(
            f"Loaded {len(teams)} teams in {len(by_division)} divisions from {os.path.basename(self.data_file)}"
        )
        return teams

    def load_prior_standings(self) -> Dict[str, int]:
        """Prior-season finish inside each division, keyed by team id."""
        return {team.id: team.prior_rank for team in self.load_teams()}

    def load_fixed_weeks(self) -> Dict[int, List[Tuple[str, str]]]:
        """
        Load pre-fixed games from the optional starting-point file:
        {"fixed_weeks": {"1": [["HOME", "AWAY"], ...]}}.

        Returns:
            Mapping of week number to (home, away) pairs; empty without a file
        """
        if not self.starting_point_file:
            return {}
        if not os.path.exists(self.starting_point_file):
            raise FileNotFoundError(f"Starting point file not found: {self.starting_point_file}")

        with open(self.starting_point_file, "r", encoding="utf-8") as f:
            document = json.load(f)

        fixed = {}
        for week, pairs in document.get("fixed_weeks", {}).items():
            fixed[int(week)] = [(str(home), str(away)) for home, away in pairs]
        logger.info(f"Loaded {sum(len(p) for p in fixed.values())} pre-fixed games in {len(fixed)} weeks")
        return fixed

    def load_all_data(self) -> Tuple[List[Team], Dict[str, int], Dict[int, List[Tuple[str, str]]]]:
        """
        Load everything needed for a batch generation.

        Returns:
            Tuple of (teams, prior standings, fixed weeks)
        """
        teams = self.load_teams()
        standings = {team.id: team.prior_rank for team in teams}
        return teams, standings, self.load_fixed_weeks()
