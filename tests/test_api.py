import pytest
from rest_framework.test import APIClient

from assessments.models import ExamAttempt
from cores.models import AuditLog

pytestmark = pytest.mark.django_db


def _url(exam, action):
    return f'/api/exams/{exam.pk}/{action}/'


def _full_marks(exam):
    return {str(exam.q1.pk): 'A', str(exam.q2.pk): ['A', 'B']}


def test_endpoints_require_authentication(scenario_exam):
    response = APIClient().post(_url(scenario_exam, 'start'))

    # session auth is listed first, so DRF answers 403 rather than 401
    assert response.status_code == 403
    assert not ExamAttempt.objects.exists()


def test_start_then_resume(api, scenario_exam):
    first = api.post(_url(scenario_exam, 'start'))
    second = api.post(_url(scenario_exam, 'start'))

    assert first.status_code == 201
    assert first.data['resumed'] is False
    assert first.data['time_remaining_seconds'] == 1800
    assert second.status_code == 200
    assert second.data['resumed'] is True
    assert second.data['attempt_id'] == first.data['attempt_id']
    assert AuditLog.objects.filter(action='START').count() == 1


def test_start_missing_exam_is_404(api):
    response = api.post('/api/exams/9999/start/')

    assert response.status_code == 404
    assert response.data['code'] == 'not_found'


def test_start_restricted_exam_is_403(api, other_candidate, scenario_exam):
    scenario_exam.allowed_users.add(other_candidate)

    response = api.post(_url(scenario_exam, 'start'))

    assert response.status_code == 403
    assert 'error' in response.data


def test_paper_hides_correct_answers(api, scenario_exam):
    response = api.get(_url(scenario_exam, 'paper'))

    assert response.status_code == 200
    first = response.data['questions'][0]
    assert first['options'] == ['A', 'B', 'C']
    assert 'correct_answers' not in first
    assert 'explanation' not in first
    assert response.data['existing_attempt'] is None
    assert response.data['exam']['attempts_used'] == 0


def test_progress_round_trip(api, scenario_exam):
    api.post(_url(scenario_exam, 'start'))

    saved = api.post(
        _url(scenario_exam, 'progress'),
        {'current_question': 1, 'answers': {str(scenario_exam.q1.pk): 'B'}, 'time_remaining': 900},
        format='json',
    )
    fetched = api.get(_url(scenario_exam, 'progress'))

    assert saved.status_code == 200
    progress = fetched.data['progress']
    assert progress['current_question'] == 1
    assert progress['answers'] == {str(scenario_exam.q1.pk): 'B'}
    assert progress['time_remaining'] == 900


def test_progress_is_null_before_start(api, scenario_exam):
    response = api.get(_url(scenario_exam, 'progress'))

    assert response.status_code == 200
    assert response.data['progress'] is None


def test_save_progress_without_attempt_is_404(api, scenario_exam):
    response = api.post(_url(scenario_exam, 'progress'), {'answers': {}}, format='json')

    assert response.status_code == 404
    assert response.data['code'] == 'no_active_attempt'


def test_answer_mark_and_clear_single_question(api, scenario_exam):
    api.post(_url(scenario_exam, 'start'))
    base = f'/api/exams/{scenario_exam.pk}/questions/{scenario_exam.q2.pk}'

    answered = api.post(f'{base}/answer/', {'answer': ['A', 'B']}, format='json')
    marked = api.post(f'{base}/mark/')
    summary = api.get(_url(scenario_exam, 'summary'))
    cleared = api.delete(f'{base}/answer/')

    assert answered.status_code == 200
    assert marked.data['marked'] is True
    assert summary.data['summary']['answered_count'] == 1
    assert summary.data['summary']['marked_count'] == 1
    assert summary.data['summary']['exam']['id'] == scenario_exam.pk
    assert cleared.data['cleared'] is True


def test_question_detail_hides_answers(api, scenario_exam):
    response = api.get(f'/api/exams/{scenario_exam.pk}/questions/{scenario_exam.q1.pk}/')

    assert response.status_code == 200
    assert response.data['text'] == 'Which layer routes packets?'
    assert 'correct_answers' not in response.data


def test_submit_full_marks(api, scenario_exam):
    api.post(_url(scenario_exam, 'start'))

    response = api.post(_url(scenario_exam, 'submit'), {'answers': _full_marks(scenario_exam), 'time_taken': 300}, format='json')

    assert response.status_code == 200
    results = response.data['results']
    assert results['score'] == '100.00'
    assert results['obtained_marks'] == 3
    assert results['passed'] is True
    assert results['time_taken'] == 300
    assert AuditLog.objects.filter(action='SUBMIT').exists()


def test_second_submit_conflicts(api, scenario_exam):
    api.post(_url(scenario_exam, 'start'))
    api.post(_url(scenario_exam, 'submit'), {'answers': _full_marks(scenario_exam)}, format='json')

    response = api.post(_url(scenario_exam, 'submit'), {'answers': {}}, format='json')

    assert response.status_code == 409
    assert response.data['code'] == 'already_finalized'
    assert ExamAttempt.objects.get().percentage == 100


def test_submit_rejects_bad_payload(api, scenario_exam):
    response = api.post(_url(scenario_exam, 'submit'), {'answers': ['not', 'a', 'map']}, format='json')

    assert response.status_code == 400


def test_auto_submit_without_attempt(api, scenario_exam):
    response = api.post(_url(scenario_exam, 'auto-submit'))

    assert response.status_code == 404


def test_auto_submit_uses_draft(api, scenario_exam):
    api.post(_url(scenario_exam, 'start'))
    api.post(_url(scenario_exam, 'progress'), {'answers': {str(scenario_exam.q1.pk): 'A'}}, format='json')

    response = api.post(_url(scenario_exam, 'auto-submit'))

    assert response.status_code == 200
    assert response.data['results']['obtained_marks'] == 1
    assert response.data['results']['score'] == '33.33'
    assert response.data['results']['passed'] is False


def test_results_after_submission(api, scenario_exam):
    api.post(_url(scenario_exam, 'start'))
    api.post(_url(scenario_exam, 'submit'), {'answers': {str(scenario_exam.q1.pk): 'A'}}, format='json')

    response = api.get(_url(scenario_exam, 'results'))

    assert response.status_code == 200
    results = response.data['results']
    assert results['score']['percentage'] == '33.33'
    assert results['statistics']['unattempted'] == 1
    first = results['answers'][0]
    assert first['user_answer'] == 'A'
    assert first['is_correct'] is True
    assert first['question']['explanation'] == 'The network layer routes.'


def test_results_before_submission_is_404(api, scenario_exam):
    assert api.get(_url(scenario_exam, 'results')).status_code == 404


def test_active_exams_and_history(api, scenario_exam, make_exam):
    make_exam(title='Draft only', status='draft')
    api.post(_url(scenario_exam, 'start'))

    active = api.get('/api/exams/active/')
    history = api.get('/api/exams/history/')

    assert [e['title'] for e in active.data['exams']] == ['Networks 101']
    assert active.data['exams'][0]['attempt_status'] == 'in_progress'
    assert history.data['count'] == 1
    assert history.data['history'][0]['exam_title'] == 'Networks 101'
