import json
from pathlib import Path

from cedar_state.config import StoreConfig
from cedar_state.models.diff_state import DiffState
from cedar_state.models.execution_result import ExecutionResult
from cedar_state.models.intent import SetStateIntent
from cedar_state.models.patch import PatchOp


OUTPUT_DIR = Path("docs/schemas")


MODELS = {
    "patch_op.schema.json": PatchOp,
    "diff_state.schema.json": DiffState,
    "set_state_intent.schema.json": SetStateIntent,
    "execution_result.schema.json": ExecutionResult,
    "store_config.schema.json": StoreConfig,
}


def main(output_dir: Path = OUTPUT_DIR) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    for filename, model in MODELS.items():
        schema = model.model_json_schema(by_alias=True)
        (output_dir / filename).write_text(
            json.dumps(schema, indent=2),
            encoding="utf-8",
        )


if __name__ == "__main__":
    main()
