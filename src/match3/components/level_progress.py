from dataclasses import dataclass


@dataclass(slots=True)
class LevelProgress:
    """Singleton component tracking score toward the current level's target."""
    index: int = 0
    score: int = 0
    target_score: int = 0
    completed: bool = False

    @property
    def ratio(self) -> float:
        if self.target_score <= 0:
            return 0.0
        return min(1.0, self.score / self.target_score)
