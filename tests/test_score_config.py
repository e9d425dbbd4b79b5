import pytest

from backend.app.utils.error_handlers import NotFoundError, ValidationError

WEIGHTS = {
    "skill_match_weight": 40,
    "experience_weight": 20,
    "interview_weight": 20,
    "test_weight": 10,
    "education_weight": 10,
}


def test_create_then_update_keeps_single_active_row(pipeline):
    from backend.app.models.scoring import ScoringConfiguration
    from backend.app.services.score_config import create_or_update, get_active_config

    position = pipeline.position()
    created = create_or_update(pipeline.db, position.id, WEIGHTS)
    assert created.skill_match_weight == 40.0

    updated = create_or_update(pipeline.db, position.id, {**WEIGHTS, "skill_match_weight": 30, "test_weight": 20})
    assert updated.id == created.id
    assert get_active_config(pipeline.db, position.id).test_weight == 20.0
    assert pipeline.db.query(ScoringConfiguration).filter(ScoringConfiguration.position_id == position.id).count() == 1


def test_weights_not_summing_to_100_are_rejected_without_change(pipeline):
    from backend.app.services.score_config import create_or_update, get_active_config

    position = pipeline.position()
    create_or_update(pipeline.db, position.id, WEIGHTS)

    with pytest.raises(ValidationError):
        create_or_update(
            pipeline.db,
            position.id,
            {
                "skill_match_weight": 30,
                "experience_weight": 20,
                "interview_weight": 20,
                "test_weight": 15,
                "education_weight": 5,
            },
        )

    pipeline.db.expire_all()
    active = get_active_config(pipeline.db, position.id)
    assert (active.skill_match_weight, active.interview_weight, active.test_weight) == (40.0, 20.0, 10.0)


def test_decimal_weights_summing_to_100_pass(pipeline):
    from backend.app.services.score_config import create_or_update

    position = pipeline.position()
    config = create_or_update(
        pipeline.db,
        position.id,
        {
            "skill_match_weight": 33.3,
            "experience_weight": 33.3,
            "interview_weight": 33.4,
            "test_weight": 0,
            "education_weight": 0,
        },
    )
    assert config.interview_weight == pytest.approx(33.4)


def test_unknown_position_is_not_found(pipeline):
    from backend.app.services.score_config import create_or_update

    with pytest.raises(NotFoundError):
        create_or_update(pipeline.db, 4242, WEIGHTS)


def test_configuration_endpoints(client, hr_headers, pipeline):
    position = pipeline.position()

    r = client.get(f"/scoring/configuration/{position.id}", headers=hr_headers)
    assert r.status_code == 404

    r = client.post(f"/scoring/configuration/{position.id}", headers=hr_headers, json=WEIGHTS)
    assert r.status_code == 200, r.text
    config = r.json()["configuration"]
    assert config["position_id"] == position.id
    assert config["skill_match_weight"] == 40.0

    bad = {**WEIGHTS, "education_weight": 0}
    r = client.post(f"/scoring/configuration/{position.id}", headers=hr_headers, json=bad)
    assert r.status_code == 400

    r = client.get(f"/scoring/configuration/{position.id}", headers=hr_headers)
    assert r.status_code == 200
    assert r.json()["configuration"]["education_weight"] == 10.0


def test_configuration_requires_hr_role(client, make_user, pipeline):
    position = pipeline.position()
    _, candidate_headers = make_user("candidate")

    r = client.post(f"/scoring/configuration/{position.id}", headers=candidate_headers, json=WEIGHTS)
    assert r.status_code == 403

    r = client.post(f"/scoring/configuration/{position.id}", json=WEIGHTS)
    assert r.status_code == 401


@pytest.mark.parametrize("field,value", [("skill_match_weight", 140), ("test_weight", -40)])
def test_out_of_range_weight_is_a_validation_error(client, hr_headers, pipeline, field, value):
    position = pipeline.position()
    body = {
        "skill_match_weight": 0,
        "experience_weight": 0,
        "interview_weight": 100,
        "test_weight": 0,
        "education_weight": 0,
    }
    # The remaining weights are adjusted so only the range check can fail.
    body[field] = value
    body["interview_weight"] = 100 - value
    r = client.post(f"/scoring/configuration/{position.id}", headers=hr_headers, json=body)
    assert r.status_code == 400
    assert client.get(f"/scoring/configuration/{position.id}", headers=hr_headers).status_code == 404
