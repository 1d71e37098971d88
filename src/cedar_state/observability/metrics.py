from pydantic import BaseModel, ConfigDict, Field


class StoreMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid")

    counters: dict[str, int] = Field(
        default_factory=dict,
        description="Named counters for setter and diff outcomes.",
    )

    def inc(self, key: str, n: int = 1) -> None:
        self.counters[key] = int(self.counters.get(key, 0)) + n

    def get(self, key: str) -> int:
        return int(self.counters.get(key, 0))

    def reset(self) -> None:
        self.counters.clear()

    def render_markdown(self) -> str:
        if not self.counters:
            return "No metrics yet."
        lines = ["### Metrics"]
        for k in sorted(self.counters.keys()):
            lines.append(f"- **{k}**: {self.counters[k]}")
        return "\n".join(lines)
