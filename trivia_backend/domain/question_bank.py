"""Bundled football trivia used by the in-memory question provider."""

from __future__ import annotations

from typing import List

from .model import Question


def _q(qid: int, text: str, answers: list[str], category: str, difficulty: str, correct: int = 0) -> Question:
    return Question(
        id=qid,
        text=text,
        answers=answers,
        correct_answer=correct,
        category=category,
        difficulty=difficulty,
    )


SEED_QUESTIONS: List[Question] = [
    # World Cup
    _q(1, "Who won the 2022 World Cup?", ["Argentina", "France", "Brazil", "Croatia"], "World Cup", "easy"),
    _q(2, "Who won the 2018 World Cup?", ["France", "Croatia", "Belgium", "England"], "World Cup", "easy"),
    _q(3, "How many times have Brazil won the World Cup?", ["5", "4", "6", "3"], "World Cup", "easy"),
    _q(4, "Who scored the winning goal in the 2014 World Cup final?",
       ["Mario Gotze", "Lionel Messi", "Thomas Muller", "Manuel Neuer"], "World Cup", "medium"),
    _q(5, "Which countries co-hosted the 2002 World Cup?",
       ["Japan and South Korea", "Brazil", "Germany", "France"], "World Cup", "medium"),
    _q(6, "Who was top scorer at the 2022 World Cup?",
       ["Kylian Mbappe", "Lionel Messi", "Julian Alvarez", "Olivier Giroud"], "World Cup", "medium"),
    _q(7, "In which year did Egypt first play at a World Cup?", ["1934", "1930", "1938", "1950"], "World Cup", "hard"),
    _q(8, "Who scored the fastest goal in World Cup history?",
       ["Hakan Sukur", "Claudio Caniggia", "Alan Shearer", "Fabio Grosso"], "World Cup", "hard"),
    # Clubs
    _q(9, "Which club is nicknamed 'Los Blancos'?",
       ["Real Madrid", "Barcelona", "Atletico Madrid", "Valencia"], "Clubs", "easy"),
    _q(10, "Which club is nicknamed 'The Old Lady'?", ["Juventus", "AC Milan", "Inter", "Napoli"], "Clubs", "easy"),
    _q(11, "Who is Barcelona's all-time top scorer?",
       ["Lionel Messi", "Ronaldinho", "Xavi", "Andres Iniesta"], "Clubs", "easy"),
    _q(12, "In which year was Al Ahly founded?", ["1907", "1905", "1910", "1908"], "Clubs", "medium"),
    _q(13, "What is Manchester United's home stadium?",
       ["Old Trafford", "Anfield", "Stamford Bridge", "Emirates Stadium"], "Clubs", "medium"),
    _q(14, "Which club won the first European Cup?", ["Real Madrid", "AC Milan", "Benfica", "Ajax"], "Clubs", "hard"),
    # Players
    _q(15, "Who has scored the most official goals in men's football?",
       ["Cristiano Ronaldo", "Lionel Messi", "Pele", "Diego Maradona"], "Players", "easy"),
    _q(16, "Who won the 2023 Ballon d'Or?",
       ["Lionel Messi", "Kylian Mbappe", "Erling Haaland", "Karim Benzema"], "Players", "easy"),
    _q(17, "How many goals did Mohamed Salah score for Liverpool in 2017-18?",
       ["44", "42", "46", "40"], "Players", "medium"),
    # Laws of the game
    _q(18, "How many players does each team have on the pitch?", ["11", "10", "12", "9"], "Laws", "easy"),
    _q(19, "How long is a regulation match, excluding stoppage time?",
       ["90 minutes", "80 minutes", "100 minutes", "120 minutes"], "Laws", "easy"),
    # Stadiums and recent events
    _q(20, "In which country is Lusail Stadium?", ["Qatar", "Saudi Arabia", "UAE", "Bahrain"], "Stadiums", "easy"),
    _q(21, "Who won the 2024 Champions League?",
       ["Real Madrid", "Borussia Dortmund", "Bayern Munich", "Manchester City"], "Recent", "easy"),
    _q(22, "Who won Euro 2024?", ["Spain", "England", "France", "Germany"], "Recent", "easy"),
    _q(23, "Who won the 2024 Copa America?", ["Argentina", "Colombia", "Uruguay", "Brazil"], "Recent", "easy"),
]
