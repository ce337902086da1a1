# -*- coding: utf-8 -*-
"""Working document.

Runs the whole partitioning workflow on the synthetic shelf from create_sample_data.
"""

import logging
import os

from ecodomain import (
    BathymetryRasterizer,
    DeepConvectionClassifier,
    DepthBandClassifier,
    LayerManager,
    ShoreDistanceEstimator,
    VerticalProfileAggregator,
    ZonePartitioner,
    attach_area_monotonicity,
    attach_band_sensitivity,
    attach_boundary_summary,
    attach_shore_distance,
    attach_zone_area_stats,
    calculate_statistics_summary,
    create_sample_data,
)


def run_example(output_dir="output"):
    """Run Example."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    os.makedirs(output_dir, exist_ok=True)

    manager = LayerManager()
    data = create_sample_data()

    print("Rasterizing soundings...")
    rasterizer = BathymetryRasterizer(resolution=5000.0, crs=None)
    grid_layer = rasterizer.execute(data["samples"], layer_manager=manager, layer_name="Depth_Grid")
    print(grid_layer)

    print("\nComputing distance to coast...")
    estimator = ShoreDistanceEstimator(data["coastline"])
    grid_layer.attach_function(attach_shore_distance, name="shore_distance", estimator=estimator)

    print("\nScreening offshore depth bands...")
    band_classifier = DepthBandClassifier()
    bands = band_classifier.execute_batch(
        grid_layer,
        shallow_limits=[-40, -60, -80, -100],
        deep_limits=[-300, -400, -500, -600],
        layer_manager=manager,
        layer_name="Offshore_Candidates",
    )
    bands.attach_function(attach_band_sensitivity, name="band_sensitivity")
    for shallow, row in bands.get_function_result("band_sensitivity").items():
        print(f"  shallow {shallow:g}: " + ", ".join(f"{deep:g} -> {area / 1e6:.0f} km2" for deep, area in row.items()))

    print("\nPartitioning zones...")
    partitioner = ZonePartitioner(shallow_limit=-60, deep_limit=-400, min_shore_distance=20000)
    zone_layer = partitioner.execute(grid_layer, estimator=estimator, layer_manager=manager, layer_name="Zones")
    zone_layer.attach_function(attach_zone_area_stats, name="zone_areas")
    stats = zone_layer.get_function_result("zone_areas")
    for zone, area in stats["zone_areas"].items():
        print(f"  {zone}: {area / 1e6:.0f} km2 ({stats['zone_percentages'][zone]:.1f}%)")

    print("\nAggregating vertical profiles...")
    aggregator = VerticalProfileAggregator(classifier=DeepConvectionClassifier(threshold=0.14))
    profile_layer = aggregator.execute(data["observations"], layer_manager=manager, layer_name="Profile")
    profile_layer.attach_function(attach_area_monotonicity, name="area_monotonicity")
    profile_layer.attach_function(attach_boundary_summary, name="boundary_60m", boundary_depth=60)
    for quarter, sides in profile_layer.get_function_result("boundary_60m").items():
        shallow, deep = sides.get("shallow", {}), sides.get("deep", {})
        print(
            f"  {quarter}: shallow Kz {shallow.get('mean_diffusivity', float('nan')):.4f}, "
            f"deep Kz {deep.get('mean_diffusivity', float('nan')):.4f}, "
            f"convection {shallow.get('convection_fraction', float('nan')):.2f}"
        )

    zone_layer.objects.to_file(os.path.join(output_dir, "zones.geojson"), driver="GeoJSON")
    profile_layer.objects.to_csv(os.path.join(output_dir, "profile.csv"))
    calculate_statistics_summary(manager, output_file=os.path.join(output_dir, "summary.json"))

    print(f"\nResults saved to {output_dir}")
    print("Available layers:")
    for i, layer_name in enumerate(manager.get_layer_names()):
        print(f"  {i + 1}. {layer_name}")


if __name__ == "__main__":
    run_example()
