from fastapi import APIRouter, Depends

from ..application.services.tracker_service import TrackerService
from ..domain.user import User
from ..exceptions import create_success_response
from ..schemas.common import dump_model
from ..schemas.cycles import PredictionsRequest
from .deps import get_current_user, get_tracker_service

router = APIRouter(prefix="/api/prediction", tags=["Prediction"])

# The model itself runs in the client, the server only stores its output
MODEL_INFO = {
    "modelType": "Linear Regression",
    "location": "frontend",
    "minDataPoints": 3,
    "features": ["cycleLength", "periodLength", "daysSinceLastPeriod"],
    "version": "1.0.0",
}


@router.post("/predict")
async def save_predictions(
    payload: PredictionsRequest,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    predictions = await tracker.update_predictions(current_user, payload.to_update())
    return create_success_response({"message": "Predictions updated successfully", "predictions": dump_model(predictions)})


@router.get("/predict")
async def get_predictions(current_user: User = Depends(get_current_user)):
    return create_success_response({"predictions": dump_model(current_user.predictions)})


@router.get("/model-info")
async def model_info():
    return create_success_response(MODEL_INFO)
