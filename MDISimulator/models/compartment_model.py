# MDISimulator Compartment Glucose Model
# A small deterministic glucose-insulin-carbohydrate model, stepped once per
# simulated minute, for running searches without the native SmartCGMS library.

from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..core.base_classes import BaseGlucoseModel, ModelReading, ScheduledSignal, Signal

MMOL_PER_GRAM_GLUCOSE = 1000.0 / 180.16


class CompartmentGlucoseModel(BaseGlucoseModel):
    """Minimal compartment model of a person on multiple daily injections.

    Insulin (bolus doses plus a continuous basal infusion) passes through
    two subcutaneous compartments into an active-insulin pool. Carbohydrates
    pass through two gut compartments before appearing in plasma. Plasma
    glucose relaxes towards an insulin-free equilibrium and is lowered in
    proportion to active insulin; interstitial glucose follows plasma glucose
    with a first-order lag.

    All readings use mmol/l for glucose, U for insulin on board and g for
    carbohydrates on board. The model contains no randomness.

    Attributes:
        params (Dict[str, Any]): Effective model parameters.
        basal_rate_u_hr (float): Currently requested basal rate.
        activity_level (float): Currently requested physical activity.
    """
    DEFAULT_PARAMS: Dict[str, float] = {
        "initial_glucose": 8.0,          # mmol/l
        "equilibrium_glucose": 12.0,     # glucose with no insulin on board, mmol/l
        "glucose_effectiveness": 0.005,  # 1/min
        "insulin_sensitivity": 0.02,     # mmol/l/min per U of active insulin
        "insulin_absorption": 1.0 / 55,  # 1/min, subcutaneous transfer rate
        "insulin_elimination": 1.0 / 60, # 1/min, active insulin clearance
        "carb_absorption": 1.0 / 40,     # 1/min, gut transfer rate
        "rescue_carb_absorption": 1.0 / 15,
        "distribution_volume_l": 11.2,
        "interstitial_lag_min": 10.0,
        "activity_sensitivity_gain": 2.0,
        "step_minutes": 1.0,
    }

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        """Initializes the model at rest.

        Args:
            params (Optional[Dict[str, Any]]): Overrides for
                `DEFAULT_PARAMS`.
        """
        super().__init__()
        self.params = dict(self.DEFAULT_PARAMS)
        if params:
            unknown = set(params) - set(self.DEFAULT_PARAMS)
            if unknown:
                raise ValueError(f"Unknown compartment model parameters: {sorted(unknown)}")
            self.params.update({k: float(v) for k, v in params.items()})
        self.reset()

    def reset(self) -> None:
        g0 = self.params["initial_glucose"]
        # subcutaneous insulin (2), active insulin, gut (2), rescue gut, plasma glucose, IG
        self._state = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.0, g0, g0])
        self.basal_rate_u_hr = 0.0
        self.activity_level = 0.0
        self._terminated = False

    def _deliver(self, signals: Tuple[ScheduledSignal, ...]) -> None:
        for signal in signals:
            if signal.signal_id == Signal.REQUESTED_INSULIN_BOLUS:
                self._state[0] += signal.level
            elif signal.signal_id == Signal.REQUESTED_INSULIN_BASAL_RATE:
                self.basal_rate_u_hr = signal.level
            elif signal.signal_id == Signal.CARB_INTAKE:
                self._state[3] += signal.level
            elif signal.signal_id == Signal.CARB_RESCUE:
                self._state[5] += signal.level
            elif signal.signal_id == Signal.PHYSICAL_ACTIVITY:
                self.activity_level = signal.level

    def _advance(self, signals: Tuple[ScheduledSignal, ...]) -> ModelReading:
        if self._terminated:
            return ModelReading(False, float("nan"), float("nan"), float("nan"), float("nan"))
        self._deliver(signals)

        p = self.params
        dt = p["step_minutes"]
        s1, s2, active, gut1, gut2, rescue, glucose, ig = self._state

        ka = p["insulin_absorption"]
        ke = p["insulin_elimination"]
        kc = p["carb_absorption"]
        kr = p["rescue_carb_absorption"]
        sensitivity = p["insulin_sensitivity"] * (1.0 + p["activity_sensitivity_gain"] * self.activity_level)

        appearance_g = kc * gut2 + kr * rescue
        ra = appearance_g * MMOL_PER_GRAM_GLUCOSE / p["distribution_volume_l"]

        d_s1 = self.basal_rate_u_hr / 60.0 - ka * s1
        d_s2 = ka * s1 - ka * s2
        d_active = ka * s2 - ke * active
        d_gut1 = -kc * gut1
        d_gut2 = kc * gut1 - kc * gut2
        d_rescue = -kr * rescue
        d_glucose = (
            p["glucose_effectiveness"] * (p["equilibrium_glucose"] - glucose)
            - sensitivity * active
            + ra
        )
        d_ig = (glucose - ig) / p["interstitial_lag_min"]

        derivative = np.array([d_s1, d_s2, d_active, d_gut1, d_gut2, d_rescue, d_glucose, d_ig])
        self._state = np.maximum(self._state + derivative * dt, 0.0)

        return ModelReading(
            ok=True,
            blood_glucose=float(self._state[6]),
            interstitial_glucose=float(self._state[7]),
            insulin_on_board=float(self._state[0] + self._state[1] + self._state[2]),
            carbs_on_board=float(self._state[3] + self._state[4] + self._state[5]),
        )

    def terminate(self) -> bool:
        if self._terminated:
            return False
        self._terminated = True
        return True
