"""Step counter: total progress units in a result tree, computed once before rendering."""

from .schema import ResultTree, Table


def count_units(tree: ResultTree) -> int:
    """
    Count the progress units the report will move through.

    Background steps count once per feature. Each examples table adds its
    data rows (header excluded). A scenario step with a table argument adds
    rows - columns, which only equals the data-row count for single-column
    tables; progress output depends on this exact figure.
    """
    count = 0
    for feature in tree.features:
        if feature.background is not None:
            count += len(feature.background.steps)
        for scenario in feature.elements:
            count += len(scenario.steps)
            for examples in scenario.examples:
                count += examples.table.row_count - 1
            for step in scenario.steps:
                arg = step.multiline_arg
                if isinstance(arg, Table):
                    count += arg.row_count - arg.column_count
    return count
