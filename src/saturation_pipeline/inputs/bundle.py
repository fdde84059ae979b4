"""All inputs of a saturation run, loaded once and read-only afterwards."""

from dataclasses import dataclass

import structlog

from saturation_pipeline.config.schema import PipelineConfig
from saturation_pipeline.gene_mapping.mapper import GeneLocationMap
from saturation_pipeline.inputs.matrices import GenomicMatrix
from saturation_pipeline.inputs.readers import read_id_list
from saturation_pipeline.interactions.models import InteractionCatalog, RegulatorRanking
from saturation_pipeline.profiles.models import HypothesisUniverse

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CohortInputs:
    """Materialized inputs of a saturation run.

    Attributes:
        ranking: Regulator ranking, most important first
        activity: Regulator x sample activity scores
        mutations: Gene x sample mutation indicators
        copy_number: Gene x sample copy-number scores
        catalog: Global interaction catalog
        location_map: Gene id -> cytoband lookup
        hypotheses: Gene-level hypothesis universe
        fusions: Gene x sample fusion indicators (optional)
        whitelist: Mutation whitelist (optional)
        activity_samples: Samples with valid activity inferences
            (default: every activity matrix column)
    """

    ranking: RegulatorRanking
    activity: GenomicMatrix
    mutations: GenomicMatrix
    copy_number: GenomicMatrix
    catalog: InteractionCatalog
    location_map: GeneLocationMap
    hypotheses: HypothesisUniverse
    fusions: GenomicMatrix | None = None
    whitelist: frozenset[str] | None = None
    activity_samples: tuple[str, ...] | None = None

    def inferred_samples(self) -> list[str]:
        """Samples with activity inferences that are also activity matrix columns."""
        if self.activity_samples is None:
            return self.activity.samples
        return [s for s in self.activity_samples if self.activity.has_sample(s)]


def load_inputs(config: PipelineConfig) -> CohortInputs:
    """
    Read every input table named in the configuration.

    Relative paths are resolved against ``config.data_dir``.

    Raises:
        FileNotFoundError: If a configured table doesn't exist
        ValueError: If a table is malformed
    """
    paths = config.inputs
    resolve = config.resolve_input

    logger.info("load_inputs_start", data_dir=str(config.data_dir))

    whitelist_path = resolve(paths.mutation_whitelist)
    samples_path = resolve(paths.samples)
    fusions_path = resolve(paths.fusions)

    inputs = CohortInputs(
        ranking=RegulatorRanking.read(resolve(paths.ranking)),
        activity=GenomicMatrix.read(resolve(paths.activity), name="activity"),
        mutations=GenomicMatrix.read(resolve(paths.mutations), name="mutations"),
        copy_number=GenomicMatrix.read(resolve(paths.copy_number), name="copy_number"),
        catalog=InteractionCatalog.read(resolve(paths.interactions)),
        location_map=GeneLocationMap.read(resolve(paths.gene_locations)),
        hypotheses=HypothesisUniverse.read(resolve(paths.hypotheses)),
        fusions=(
            GenomicMatrix.read(fusions_path, name="fusions")
            if fusions_path is not None and fusions_path.exists()
            else None
        ),
        whitelist=(
            frozenset(read_id_list(whitelist_path)) if whitelist_path is not None else None
        ),
        activity_samples=(
            tuple(read_id_list(samples_path)) if samples_path is not None else None
        ),
    )

    if fusions_path is not None and inputs.fusions is None:
        logger.warning("fusion_matrix_missing", path=str(fusions_path))

    logger.info(
        "load_inputs_complete",
        regulators=len(inputs.ranking),
        activity_samples=len(inputs.activity.samples),
        mutation_samples=len(inputs.mutations.samples),
        copy_number_samples=len(inputs.copy_number.samples),
        fusion_samples=len(inputs.fusions.samples) if inputs.fusions is not None else 0,
        whitelist=len(inputs.whitelist) if inputs.whitelist is not None else None,
    )
    return inputs
