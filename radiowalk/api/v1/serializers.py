# radiowalk/api/v1/serializers.py
from radiowalk.db.models.stations import Station
from radiowalk.db.models_user import User


def user_brief(u: User) -> dict:
    return {"id": u.id, "username": u.username}


def station_out(s: Station) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "latitude": s.latitude,
        "longitude": s.longitude,
        "type": s.type.value,
        "tags": s.tags,
        "streamLink": s.stream_link,
        "streamName": s.stream_name,
        "favicon": s.favicon,
        "likes": s.likes,
        "ownerId": s.owner_id,
        "owner": user_brief(s.owner),
        "sharedUsers": [user_brief(u) for u in s.shared_users],
        "createdAt": s.created_at,
        "updatedAt": s.updated_at,
    }
