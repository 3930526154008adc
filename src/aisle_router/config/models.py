from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1  # emit every n-th progress/sweep record at DEBUG


# ----------------- LAYOUT ---------------------


class RasterModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    margin: int = 5  # empty cells added around the drawing (half on each side)
    max_cells: int = 10_000_000
    batch_size: int = 25
    progress_every: int = 4  # batches between progress reports
    downscale_max_side: int | None = 1000  # None => hand back the deferred layout as-is

    @field_validator("margin")
    def _nonneg(cls, v: int, info: ValidationInfo) -> int:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("max_cells", "batch_size", "progress_every", "downscale_max_side")
    def _positive(cls, v: int | None, info: ValidationInfo) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v


class BufferModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    radius: int = Field(default=2, ge=0)  # cells of clearance kept around walls


# ----------------- ROUTING ---------------------


class PathfinderAStarModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["astar"] = "astar"
    corner_rule: Literal["unless_both_blocked", "only_when_clear"] = "unless_both_blocked"


PathfinderUnion = Annotated[PathfinderAStarModel, Field(discriminator="kind")]


class MatrixModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    workers: int = Field(default=1, ge=1)


class TwoOptSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    max_iterations: int | None = Field(default=None, ge=1)  # None => n * n sweeps
    deadline_s: float | None = Field(default=None, gt=0)


class OptimizerAutoModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["auto"] = "auto"
    brute_force_max: int = Field(default=4, ge=1)
    held_karp_max: int = Field(default=15, ge=1, le=20)
    two_opt: TwoOptSettings = Field(default_factory=TwoOptSettings)

    @model_validator(mode="after")
    def _check_thresholds(self):
        if self.brute_force_max > self.held_karp_max:
            raise ValueError("brute_force_max must not exceed held_karp_max")
        return self


class OptimizerBruteForceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["brute_force"] = "brute_force"


class OptimizerHeldKarpModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["held_karp"] = "held_karp"
    max_n: int = Field(default=20, ge=1, le=24)


class OptimizerNearestNeighborModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["nearest_neighbor"] = "nearest_neighbor"


class OptimizerTwoOptModel(TwoOptSettings):
    kind: Literal["two_opt"] = "two_opt"


OptimizerUnion = Annotated[
    OptimizerAutoModel
    | OptimizerBruteForceModel
    | OptimizerHeldKarpModel
    | OptimizerNearestNeighborModel
    | OptimizerTwoOptModel,
    Field(discriminator="kind"),
]


# ----------------- PLANNING ---------------------


class PlannerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    on_unreachable: Literal["drop", "error"] = "drop"
    simplify: bool = True


# ------------------------------------------------------------------


class NavigatorModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "store"
    log: LogModel = LogModel()
    raster: RasterModel = Field(default_factory=RasterModel)
    buffer: BufferModel = Field(default_factory=BufferModel)
    pathfinder: PathfinderUnion = Field(default_factory=PathfinderAStarModel)
    matrix: MatrixModel = Field(default_factory=MatrixModel)
    optimizer: OptimizerUnion = Field(default_factory=OptimizerAutoModel)
    planner: PlannerModel = Field(default_factory=PlannerModel)
