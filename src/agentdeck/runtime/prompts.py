"""System prompts for roster agents."""

from typing import Dict, Optional

from ..models.agents import COORDINATOR, AgentConfig, agent_description

BASE_PROMPT = (
    "You are {name}, part of a team of software engineering agents working in a "
    "terminal for one user. Your role: {role}"
)

TEAM_HEADER = "Your team (agent: provider / model):"
MEMORY_HEADER = "PROJECT MEMORY (notes saved for this project):"
SUMMARY_HEADER = "PREVIOUS SESSION CONTEXT:"


def build_system_prompt(
    agent_name: str,
    team: Dict[str, AgentConfig],
    project_memory: Optional[str] = None,
    prior_summary: Optional[str] = None,
) -> str:
    """
    Build an agent's system prompt.

    Only the coordinator is told about the rest of the team.

    Args:
        agent_name: Agent the prompt is for
        team: Current agent assignments
        project_memory: Saved notes for the current project
        prior_summary: Summary carried over from a previous session

    Returns:
        Prompt text
    """
    sections = [BASE_PROMPT.format(name=agent_name, role=agent_description(agent_name))]

    if agent_name == COORDINATOR:
        lines = [
            f"- {name}: {cfg.provider.value} / {cfg.model_name}"
            for name, cfg in sorted(team.items())
            if name != COORDINATOR
        ]
        sections.append(TEAM_HEADER + "\n" + "\n".join(lines))

    if project_memory:
        sections.append(f"{MEMORY_HEADER}\n{project_memory}")

    if prior_summary:
        sections.append(f"{SUMMARY_HEADER}\n{prior_summary}")

    return "\n\n".join(sections)
