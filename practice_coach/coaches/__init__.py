"""Coach factory for creating different feedback coaches."""

from practice_coach.coaches.base_coach import BaseCoach


def create_coach(coach_type: str = "openai") -> BaseCoach:
    """Factory function to create a coach instance based on type.

    Args:
        coach_type: Type of coach to create ("openai" or "ollama")

    Returns:
        BaseCoach instance

    Raises:
        ValueError: If coach_type is not supported
    """
    coach_type = coach_type.lower()

    if coach_type == "openai":
        from practice_coach.coaches.openai_coach import OpenAICoach
        return OpenAICoach()
    elif coach_type == "ollama":
        from practice_coach.coaches.ollama_coach import OllamaCoach
        return OllamaCoach()
    else:
        raise ValueError(
            f"Unsupported coach type: '{coach_type}'. "
            f"Supported types are: 'openai', 'ollama'"
        )


__all__ = ["create_coach", "BaseCoach"]
