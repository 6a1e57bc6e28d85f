"""Staff dashboard assets."""

from fastapi import APIRouter, Response

from serviceqr.services.sound import notification_tone_wav

router = APIRouter()


@router.get("/dashboard/tone.wav")
def get_notification_tone():
    """Tone played when a new request arrives."""
    return Response(
        content=notification_tone_wav(),
        media_type="audio/wav",
        headers={"Cache-Control": "public, max-age=86400"},
    )
