"""
Efficiency Heatmap Visualization

This module generates 2D heatmaps showing Efficiency = f(frame size, BER),
one panel per checksum kind.
"""

import os
import csv
from typing import Dict, List, Optional, Tuple

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from config import PLOTS_DIR


class EfficiencyHeatmap:
    """
    Generates heatmaps of mean link efficiency.

    Rows are maximum frame sizes (largest at the top), columns are
    bad-state bit error rates.
    """

    def __init__(
        self,
        results: Optional[List[Dict]] = None,
        csv_file: Optional[str] = None
    ):
        """
        Initialize heatmap generator.

        Args:
            results: List of result dictionaries
            csv_file: Path to CSV file with results
        """
        if results:
            self.results = results
        elif csv_file:
            self.results = self._load_csv(csv_file)
        else:
            self.results = []

        self.results = [r for r in self.results if not r.get('error')]

        self.checksum_kinds = sorted(set(r['checksum_kind'] for r in self.results))
        self.frame_sizes = sorted(set(r['max_frame_size'] for r in self.results))
        self.bad_state_bers = sorted(set(r['bad_state_ber'] for r in self.results))

    def _load_csv(self, filepath: str) -> List[Dict]:
        """Load results from CSV file."""
        results = []
        with open(filepath, 'r') as f:
            reader = csv.DictReader(f)
            for row in reader:
                # Convert numeric fields
                for key in row:
                    try:
                        if any(c in str(row[key]) for c in '.e'):
                            row[key] = float(row[key])
                        else:
                            row[key] = int(row[key])
                    except (ValueError, TypeError):
                        pass
                results.append(row)
        return results

    def create_efficiency_matrix(self, checksum_kind: str) -> Tuple[np.ndarray, Tuple[int, int]]:
        """
        Create matrix of mean efficiency values for one checksum kind.

        Args:
            checksum_kind: Checksum kind to select

        Returns:
            Tuple of (matrix, indices of the best cell)
        """
        grouped: Dict[Tuple[int, float], List[float]] = {}
        for r in self.results:
            if r['checksum_kind'] != checksum_kind:
                continue
            key = (r['max_frame_size'], r['bad_state_ber'])
            grouped.setdefault(key, []).append(float(r['efficiency']))

        matrix = np.zeros((len(self.frame_sizes), len(self.bad_state_bers)))
        for i, size in enumerate(self.frame_sizes):
            for j, ber in enumerate(self.bad_state_bers):
                values = grouped.get((size, ber))
                if values:
                    matrix[i, j] = np.mean(values)

        best = np.unravel_index(np.argmax(matrix), matrix.shape)
        return matrix, (int(best[0]), int(best[1]))

    def plot(
        self,
        output_file: Optional[str] = None,
        title: str = "Link Efficiency vs Frame Size and Bad-State BER",
        cmap: str = "viridis",
        show_values: bool = True
    ) -> str:
        """
        Generate and save heatmap.

        Args:
            output_file: Output file path (auto-generated if None)
            title: Plot title
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if not self.results:
            raise ValueError("No results to plot")

        panels = len(self.checksum_kinds)
        fig, axes = plt.subplots(1, panels, figsize=(7 * panels, 6), squeeze=False)

        for ax, kind in zip(axes[0], self.checksum_kinds):
            matrix, _ = self.create_efficiency_matrix(kind)

            # Larger frame sizes at the top
            sns.heatmap(
                np.flipud(matrix),
                annot=show_values,
                fmt='.3f',
                cmap=cmap,
                vmin=0.0,
                vmax=1.0,
                xticklabels=[f"{ber:.0e}" for ber in self.bad_state_bers],
                yticklabels=list(reversed(self.frame_sizes)),
                ax=ax,
                cbar_kws={'label': 'Efficiency'}
            )
            ax.set_xlabel('Bad-State BER', fontsize=12)
            ax.set_ylabel('Max Frame Size (bytes)', fontsize=12)
            ax.set_title(kind.upper())

        plt.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, 'efficiency_heatmap.png')

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"Heatmap saved to: {output_file}")
        return output_file
