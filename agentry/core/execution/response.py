"""
agentry.core.execution.response - Response Processor

Turns the raw step trace of a planned run into a conversational answer with
one extra completion call. If that call fails the raw trace is returned.
"""

import logging

from agentry.llm import ModelAdapter


class ResponseProcessor:
    """Humanizes planned-execution output."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def build_prompt(
        self, original_message: str, raw_result: str, system_prompt: str | None = None
    ) -> str:
        prefix = f"{system_prompt}\n\n" if system_prompt else ""
        return (
            f"{prefix}The user asked: \"{original_message}\"\n\n"
            "I executed the following tools to fulfill their request:\n\n"
            f"{raw_result}\n\n"
            "Please provide a natural, helpful, conversational response to the user based "
            "on these tool execution results. Format the information in a user-friendly way."
        )

    async def generate_conversational_response(
        self,
        original_message: str,
        raw_result: str,
        model: ModelAdapter,
        system_prompt: str | None = None,
    ) -> str:
        """
        Convert a raw ``"{stepId}: {result}"`` trace into a conversational reply.

        Args:
            original_message: The user's request
            raw_result: Joined step trace from the planner
            model: Adapter used for the completion call
            system_prompt: Optional system prompt to prepend

        Returns:
            The model's reply, or ``raw_result`` unchanged if the call raises
            or comes back empty
        """
        prompt = self.build_prompt(original_message, raw_result, system_prompt)
        self._logger.debug("Generating conversational response from planner output")

        try:
            response = await model.complete(prompt)
        except Exception as e:
            self._logger.warning(
                f"Failed to generate conversational response, returning raw result: {e}",
                extra={"error": str(e), "adapter": getattr(model, "name", None)},
            )
            return raw_result

        if not response or not response.strip():
            self._logger.warning("Model returned an empty conversational response, returning raw result")
            return raw_result

        self._logger.debug("Conversational response generated successfully")
        return response
