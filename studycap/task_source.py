from langchain_ollama import ChatOllama
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers import JsonOutputParser
from loguru import logger
from pydantic import BaseModel, Field, ValidationError
from typing import List, Optional

from studycap.config import settings
from studycap.schemas import TaskContent, TaskType


def get_task_source():
    """Factory function to return the appropriate task source based on config"""
    if settings.ai_provider.lower() == "claude":
        return ClaudeTaskSource()
    else:
        return OllamaTaskSource()


class SuggestedTask(BaseModel):
    """Schema for a single task suggested by the LLM"""
    title: str = Field(description="Short task title")
    description: str = Field(description="What the student should do")
    topic: str = Field(description="Specific topic name the task covers")
    type: str = Field(description="One of: active_recall, practice, review, spaced_review, deep_study")
    timeMinutes: int = Field(description="Estimated minutes, between 10 and 60")

class PlanOutput(BaseModel):
    """Schema for the LLM's plan response"""
    tasks: List[SuggestedTask] = Field(description="3-5 tasks per day of the plan")


class BaseTaskSource:
    """Base class for LLM-backed study task suggestions"""

    def __init__(self):
        self.llm = None
        self.parser = JsonOutputParser(pydantic_object=PlanOutput)

    def __call__(self, goal: str, duration_days: int, weak_topics: List[str], focused: bool = False) -> List[TaskContent]:
        return self.generate_tasks(goal, duration_days, weak_topics, focused)

    def generate_tasks(
        self,
        goal: str,
        duration_days: int,
        weak_topics: List[str],
        focused: bool = False
    ) -> List[TaskContent]:
        """
        Ask the LLM for task content covering a plan.

        Args:
            goal: Free-text study goal
            duration_days: Number of days the content should cover
            weak_topics: Topics the student struggles with
            focused: Replanning request (shorter, more focused sessions)

        Returns:
            List of TaskContent; malformed entries are skipped
        """
        system_prompt = self._build_system_prompt(focused)
        human_prompt = self._build_full_prompt(goal, duration_days, weak_topics, focused)
        logger.debug("Prompt for {}:\n{}\n{}", self.__class__.__name__, system_prompt, human_prompt)

        prompt = ChatPromptTemplate.from_messages([
            ("system", system_prompt),
            ("human", human_prompt + "\n\n{format_instructions}")
        ])

        chain = prompt | self.llm | self.parser

        result = chain.invoke({
            "format_instructions": self.parser.get_format_instructions()
        })

        return self._to_contents(result)

    def _build_system_prompt(self, focused: bool) -> str:
        if focused:
            return """You are an adaptive study coach. Adjust study plans based on student struggles.
Always respond with valid JSON only."""
        return """You are an expert study coach. Create structured, actionable study plans.
Always respond with valid JSON only, no markdown or explanations."""

    def _build_full_prompt(self, goal: str, duration_days: int, weak_topics: List[str], focused: bool) -> str:
        weak_line = ""
        if weak_topics:
            weak_line = f"The student struggles with these topics, prioritize them: {', '.join(weak_topics)}"

        if focused:
            return f"""The student is struggling with their study plan for: "{goal}"
Days remaining: {duration_days}
{weak_line}

Create an adjusted set of tasks that:
1. Extends time for difficult topics
2. Adds more practice problems
3. Includes shorter, more focused sessions"""

        return f"""Create tasks for a {duration_days}-day study plan for the goal: "{goal}"
{weak_line}

Create {duration_days * 3} to {duration_days * 5} tasks in total.
Include variety: Active Recall, Practice Problems, Spaced Review, Deep Study sessions."""

    def _to_contents(self, result) -> List[TaskContent]:
        items = result.get("tasks", []) if isinstance(result, dict) else result or []
        contents = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                contents.append(TaskContent(
                    title=item.get("title", ""),
                    description=item.get("description") or "",
                    topic=item.get("topic"),
                    task_type=item.get("type"),
                    time_minutes=item.get("timeMinutes"),
                ))
            except ValidationError as e:
                logger.warning("Skipping malformed task suggestion {}: {}", item, e)
        return contents


class OllamaTaskSource(BaseTaskSource):
    """Task source using local Ollama for development"""

    def __init__(self):
        super().__init__()
        self.llm = ChatOllama(
            model=settings.ollama_model,
            base_url=settings.ollama_base_url,
            temperature=0.0,
            format="json"
        )


class ClaudeTaskSource(BaseTaskSource):
    """Task source using Claude API for production"""

    def __init__(self):
        super().__init__()
        if not settings.claude_api_key:
            raise ValueError("CLAUDE_API_KEY not set in environment variables")

        from langchain_anthropic import ChatAnthropic

        self.llm = ChatAnthropic(
            model=settings.claude_model,
            api_key=settings.claude_api_key,
            temperature=0.0
        )


class TemplateTaskSource:
    """
    Offline task source that needs no LLM.

    Produces one study, recall and practice task per topic; topics come from
    the weak topics first, then from the explicit topic list (or the goal).
    """

    PATTERNS = [
        (TaskType.DEEP_STUDY, "Study {topic}", "Read through {topic} and summarise the key ideas"),
        (TaskType.ACTIVE_RECALL, "Recall {topic}", "Close your notes and write down everything you remember about {topic}"),
        (TaskType.PRACTICE, "Practice {topic}", "Work through practice problems on {topic}"),
    ]

    def __init__(self, topics: Optional[List[str]] = None):
        self.topics = topics or []

    def __call__(self, goal: str, duration_days: int, weak_topics: List[str], focused: bool = False) -> List[TaskContent]:
        return self.generate_tasks(goal, duration_days, weak_topics, focused)

    def generate_tasks(
        self,
        goal: str,
        duration_days: int,
        weak_topics: List[str],
        focused: bool = False
    ) -> List[TaskContent]:
        topics = []
        for topic in list(weak_topics) + (self.topics or [goal]):
            if topic and topic.strip() and topic.strip().lower() not in [t.lower() for t in topics]:
                topics.append(topic.strip())

        contents = []
        for task_type, title, description in self.PATTERNS:
            for topic in topics:
                contents.append(TaskContent(
                    title=title.format(topic=topic),
                    description=description.format(topic=topic),
                    topic=topic,
                    task_type=task_type.value,
                ))
        return contents
