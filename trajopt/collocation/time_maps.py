import numpy as np


class AffineTimeMap:
    """
    Maps physical time `t` in [`t0`, `tf`] to the reference interval [-1, 1],
    on which collocation grids are defined, by
    `tau = (2 * t - t0 - tf) / (tf - t0)`.
    """
    def __init__(self, t0, tf):
        """
        Parameters
        ----------
        t0 : float
            Initial time.
        tf : float
            Final time. Must satisfy `tf > t0`.

        Raises
        ------
        ValueError
            If `tf <= t0` or either endpoint is not finite.
        """
        self.t0, self.tf = float(t0), float(tf)
        if not np.isfinite([self.t0, self.tf]).all():
            raise ValueError("time domain endpoints must be finite")
        if self.tf <= self.t0:
            raise ValueError(f"time domain [{self.t0}, {self.tf}] must satisfy "
                             f"t0 < tf")

    @property
    def duration(self):
        return self.tf - self.t0

    def physical_to_reference(self, t):
        """
        Convert physical time `t` to the reference interval. Points outside
        [`t0`, `tf`] map outside [-1, 1].
        """
        t = np.asarray(t, dtype=float)
        return (2. * t - self.t0 - self.tf) / self.duration

    def reference_to_physical(self, tau):
        """Convert reference points `tau` to physical time."""
        tau = np.asarray(tau, dtype=float)
        return self.t0 + self.duration * (tau + 1.) / 2.
