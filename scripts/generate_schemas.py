"""Generate JSON schemas for intake inputs and result records into schemas/."""

import json
from pathlib import Path

from forensic_intake.config import IntakeConfig
from forensic_intake.contracts import ExternalIntakeResult, InternalIntakeResult
from forensic_intake.kernel.determination import DeterminationResult
from forensic_intake.kernel.run_unit import RunUnit


SCHEMA_MODELS = {
    "intake_config.schema.json": IntakeConfig,
    "run_unit.schema.json": RunUnit,
    "determination.schema.json": DeterminationResult,
    "intake_internal.schema.json": InternalIntakeResult,
    "intake_external.schema.json": ExternalIntakeResult,
}


def generate_schemas():
    """Generate JSON schemas for all persisted models."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    for filename, model in SCHEMA_MODELS.items():
        schema_path = schemas_dir / filename
        with open(schema_path, 'w', encoding='utf-8') as f:
            json.dump(model.model_json_schema(mode="serialization"), f, indent=2, ensure_ascii=False)
        print(f"Generated: {schema_path}")

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
