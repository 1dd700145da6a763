from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from assessments.models import Assessment, Question
from attempts.models import Answer, Submission
from cores.models import AuditLog

pytestmark = pytest.mark.django_db


def _start(client, assessment):
    return client.post(f'/api/assessments/{assessment.id}/start/')


def test_start_then_resume(client_for, mixed_assessment, student):
    assessment, mcq, essay = mixed_assessment
    client = client_for(student)

    first = _start(client, assessment)
    second = _start(client, assessment)

    assert first.status_code == 201
    assert first.data['resumed'] is False
    assert [q['id'] for q in first.data['questions']] == [mcq.id, essay.id]
    assert all('is_correct' not in o for o in first.data['questions'][0]['options'])
    assert first.data['time_remaining_seconds'] is None
    assert second.status_code == 200
    assert second.data['resumed'] is True
    assert second.data['id'] == first.data['id']


def test_timed_attempt_reports_remaining_time(client_for, make_assessment, add_question, student):
    assessment = make_assessment(duration_minutes=45)
    add_question(assessment, Question.QuestionType.DESCRIPTIVE)

    response = _start(client_for(student), assessment)

    assert 2690 <= response.data['time_remaining_seconds'] <= 2700


def test_full_learner_flow(client_for, mixed_assessment, student):
    assessment, mcq, essay = mixed_assessment
    client = client_for(student)
    attempt_id = _start(client, assessment).data['id']
    correct = mcq.options.get(text='B')

    saved = client.put(
        f'/api/attempts/{attempt_id}/answers/{mcq.id}/', {'selected_option_id': correct.id}, format='json'
    )
    assert saved.status_code == 200
    assert 'is_correct' not in saved.data

    submitted = client.post(
        f'/api/attempts/{attempt_id}/submit/',
        {'answers': [{'question_id': essay.id, 'text_answer': 'My essay'}]},
        format='json',
    )
    assert submitted.status_code == 200
    assert submitted.data['already_submitted'] is False
    assert submitted.data['status'] == Submission.Status.SUBMITTED
    assert submitted.data['total_score'] == '5.00'
    assert Answer.objects.filter(submission_id=attempt_id).count() == 2

    again = client.post(f'/api/attempts/{attempt_id}/submit/', {}, format='json')
    assert again.status_code == 200
    assert again.data['already_submitted'] is True

    late = client.put(f'/api/attempts/{attempt_id}/answers/{essay.id}/', {'text_answer': 'edit'}, format='json')
    assert late.status_code == 409
    assert late.data == {'error': late.data['error'], 'code': 'submission_locked'}


def test_withheld_score_is_hidden_until_graded(client_for, mixed_assessment, student):
    assessment, _, essay = mixed_assessment
    assessment.show_score_immediately = False
    assessment.save()
    client = client_for(student)
    attempt_id = _start(client, assessment).data['id']

    response = client.post(
        f'/api/attempts/{attempt_id}/submit/',
        {'answers': [{'question_id': essay.id, 'text_answer': 'text'}]},
        format='json',
    )

    assert response.data['total_score'] is None
    assert response.data['passed'] is None
    assert response.data['results_pending'] is True


def test_invalid_answer_payload_uses_error_shape(client_for, mixed_assessment, student):
    assessment, mcq, _ = mixed_assessment
    client = client_for(student)
    attempt_id = _start(client, assessment).data['id']

    response = client.put(f'/api/attempts/{attempt_id}/answers/{mcq.id}/', {'text_answer': 'B'}, format='json')

    assert response.status_code == 400
    assert response.data['code'] == 'invalid_answer'


def test_learner_cannot_open_someone_elses_attempt(client_for, mixed_assessment, student, other_student):
    assessment, _, _ = mixed_assessment
    attempt_id = _start(client_for(student), assessment).data['id']

    response = client_for(other_student).get(f'/api/attempts/{attempt_id}/')

    assert response.status_code == 404


def test_attempt_limit_error(client_for, mixed_assessment, student):
    assessment, _, _ = mixed_assessment
    assessment.max_attempts = 1
    assessment.save()
    client = client_for(student)
    attempt_id = _start(client, assessment).data['id']
    client.post(f'/api/attempts/{attempt_id}/submit/', {}, format='json')

    response = _start(client, assessment)

    assert response.status_code == 403
    assert response.data['code'] == 'attempt_limit_exceeded'


def test_empty_assessment_cannot_be_started(client_for, make_assessment, student):
    response = _start(client_for(student), make_assessment())

    assert response.status_code == 409
    assert response.data['code'] == 'empty_question_bank'


def test_learner_attempt_history(client_for, mixed_assessment, student, other_student):
    assessment, _, _ = mixed_assessment
    _start(client_for(other_student), assessment)
    client = client_for(student)
    _start(client, assessment)

    response = client.get('/api/attempts/')

    assert response.status_code == 200
    assert len(response.data) == 1
    assert response.data[0]['assessment']['id'] == assessment.id


def test_grader_workbench_flow(client_for, mixed_assessment, student, grader):
    assessment, _, essay = mixed_assessment
    learner = client_for(student)
    attempt_id = _start(learner, assessment).data['id']
    learner.post(
        f'/api/attempts/{attempt_id}/submit/',
        {'answers': [{'question_id': essay.id, 'text_answer': 'Essay'}]},
        format='json',
    )

    client = client_for(grader)
    listing = client.get(f'/api/grading/assessments/{assessment.id}/submissions/')
    assert listing.status_code == 200
    assert listing.data[0]['pending_answers'] == 1
    answer_id = listing.data[0]['answers'][0]['id']

    too_many = client.post(f'/api/grading/answers/{answer_id}/', {'marks': '7'}, format='json')
    assert too_many.status_code == 400
    assert too_many.data['code'] == 'marks_out_of_range'

    graded = client.post(f'/api/grading/answers/{answer_id}/', {'marks': '4', 'feedback': 'Good'}, format='json')
    assert graded.status_code == 200
    assert graded.data['status'] == Submission.Status.GRADED
    assert graded.data['total_score'] == Decimal('4.00')
    assert graded.data['passed'] is False


def test_batch_grading_endpoint(client_for, mixed_assessment, student, grader):
    assessment, _, essay = mixed_assessment
    learner = client_for(student)
    attempt_id = _start(learner, assessment).data['id']
    learner.post(
        f'/api/attempts/{attempt_id}/submit/',
        {'answers': [{'question_id': essay.id, 'text_answer': 'Essay'}]},
        format='json',
    )
    answer = Answer.objects.get(submission_id=attempt_id)

    response = client_for(grader).post(
        f'/api/grading/submissions/{attempt_id}/',
        {'grades': [{'answer_id': answer.id, 'marks': '5', 'feedback': 'Full marks'}], 'comments': 'Well done'},
        format='json',
    )

    assert response.status_code == 200
    assert response.data['status'] == Submission.Status.GRADED
    assert response.data['grader_comments'] == 'Well done'
    assert response.data['pending_answers'] == 0


def test_students_cannot_grade(client_for, mixed_assessment, student):
    assessment, _, _ = mixed_assessment

    response = client_for(student).get(f'/api/grading/assessments/{assessment.id}/submissions/')

    assert response.status_code == 403
    assert response.data['code'] == 'permission_denied'


def test_unauthenticated_requests_are_rejected(api_client, mixed_assessment):
    assessment, _, _ = mixed_assessment

    response = _start(api_client, assessment)

    assert response.status_code == 401
    assert 'error' in response.data


def test_learners_only_see_published_assessments(client_for, make_assessment, student):
    published = make_assessment(title='Open')
    make_assessment(title='Draft', status=Assessment.Status.DRAFT)

    response = client_for(student).get('/api/assessments/')

    assert [a['id'] for a in response.data] == [published.id]
    assert 'randomize_questions' not in response.data[0]


def test_instructor_creates_assessment_with_audit_entry(client_for, instructor):
    response = client_for(instructor).post('/api/assessments/', {
        'title': 'Midterm',
        'total_marks': '20',
        'passing_marks': '25',
    }, format='json')
    assert response.status_code == 400
    assert response.data['code'] == 'invalid'
    assert 'passing_marks' in response.data['fields']

    response = client_for(instructor).post('/api/assessments/', {
        'title': 'Midterm',
        'total_marks': '20',
        'passing_marks': '12',
        'duration_minutes': 60,
    }, format='json')
    assert response.status_code == 201
    assert response.data['created_by'] == instructor.id
    assert AuditLog.objects.filter(action='CREATE', target_object_id=str(response.data['id'])).exists()


def test_students_cannot_author_questions(client_for, mixed_assessment, student):
    assessment, _, _ = mixed_assessment

    response = client_for(student).post('/api/questions/', {
        'assessment': assessment.id,
        'question_text': 'Sneaky',
        'question_type': 'descriptive',
        'marks': '1',
    }, format='json')

    assert response.status_code == 403


def test_instructor_creates_true_false_question(client_for, make_assessment, instructor):
    assessment = make_assessment()

    response = client_for(instructor).post('/api/questions/', {
        'assessment': assessment.id,
        'question_text': 'The sky is blue',
        'question_type': 'true_false',
        'marks': '2',
        'correct_answer': 'True',
    }, format='json')

    assert response.status_code == 201
    question = Question.objects.get(pk=response.data['id'])
    assert [(o.text, o.is_correct) for o in question.options.all()] == [('True', True), ('False', False)]


def test_bulk_upload_questions(client_for, make_assessment, instructor):
    assessment = make_assessment()
    csv_body = (
        "question_text,question_type,marks,options,correct_answer\n"
        "Capital of France?,mcq,2,Paris|Lyon|Nice,Paris\n"
        "Explain osmosis,descriptive,5,,\n"
        "Water boils at 100C,true_false,1,,True\n"
    )
    upload = SimpleUploadedFile('questions.csv', csv_body.encode('utf-8'), content_type='text/csv')

    response = client_for(instructor).post(
        '/api/questions/bulk-upload/', {'assessment_id': assessment.id, 'file': upload}, format='multipart'
    )

    assert response.status_code == 201
    questions = list(assessment.questions.all())
    assert [q.question_type for q in questions] == ['mcq', 'descriptive', 'true_false']
    assert questions[0].options.get(is_correct=True).text == 'Paris'
    assert questions[1].options.count() == 0
    assert questions[2].options.count() == 2


def test_bulk_upload_rejects_bad_rows_atomically(client_for, make_assessment, instructor):
    assessment = make_assessment()
    csv_body = (
        "question_text,question_type,marks,options,correct_answer\n"
        "Fine,descriptive,1,,\n"
        "Broken,essay,1,,\n"
    )
    upload = SimpleUploadedFile('questions.csv', csv_body.encode('utf-8'), content_type='text/csv')

    response = client_for(instructor).post(
        '/api/questions/bulk-upload/', {'assessment_id': assessment.id, 'file': upload}, format='multipart'
    )

    assert response.status_code == 400
    assert 'line 3' in response.data['error']
    assert not assessment.questions.exists()


def test_admin_stats(client_for, mixed_assessment, student, admin_user):
    assessment, _, _ = mixed_assessment
    _start(client_for(student), assessment)

    response = client_for(admin_user).get('/api/admin/stats/')

    assert response.status_code == 200
    assert response.data['published_assessments'] == 1
    assert response.data['total_learners'] == 1
    assert response.data['in_progress'] == 1


def test_audit_log_filters_by_submission(client_for, mixed_assessment, student, admin_user):
    assessment, _, _ = mixed_assessment
    attempt_id = _start(client_for(student), assessment).data['id']

    response = client_for(admin_user).get('/api/admin/audit-logs/', {'submission': attempt_id})

    assert response.status_code == 200
    assert [entry['action'] for entry in response.data] == ['ATTEMPT_START']
    assert response.data[0]['actor_email'] == student.email


def test_workbench_lists_only_answers_needing_a_grader(client_for, mixed_assessment, student, grader):
    assessment, mcq, essay = mixed_assessment
    learner = client_for(student)
    attempt_id = _start(learner, assessment).data['id']
    learner.post(
        f'/api/attempts/{attempt_id}/submit/',
        {'answers': [
            {'question_id': mcq.id, 'selected_option_id': mcq.options.get(text='B').id},
            {'question_id': essay.id, 'text_answer': 'Essay'},
        ]},
        format='json',
    )

    listing = client_for(grader).get(f'/api/grading/assessments/{assessment.id}/submissions/')

    assert [a['question'] for a in listing.data[0]['answers']] == [essay.id]
    assert listing.data[0]['pending_answers'] == 1
    assert listing.data[0]['total_score'] == '5.00'


def test_options_are_editable_before_any_attempt(client_for, mixed_assessment, instructor):
    _, mcq, _ = mixed_assessment

    response = client_for(instructor).patch(
        f'/api/questions/{mcq.id}/', {'options': ['X', 'Y'], 'correct_answer': 'Y'}, format='json'
    )

    assert response.status_code == 200
    assert [(o.text, o.is_correct) for o in mcq.options.all()] == [('X', False), ('Y', True)]


def test_options_are_frozen_once_attempted(client_for, mixed_assessment, student, instructor):
    assessment, mcq, _ = mixed_assessment
    attempt_id = _start(client_for(student), assessment).data['id']
    option_ids = list(mcq.options.values_list('id', flat=True))
    client = client_for(instructor)

    replaced = client.patch(
        f'/api/questions/{mcq.id}/', {'options': ['X', 'Y'], 'correct_answer': 'Y'}, format='json'
    )
    retyped = client.patch(f'/api/questions/{mcq.id}/', {'question_type': 'descriptive'}, format='json')
    reworded = client.patch(f'/api/questions/{mcq.id}/', {'question_text': 'Pick the second letter'}, format='json')

    assert replaced.status_code == 400
    assert 'options' in replaced.data['fields']
    assert retyped.status_code == 400
    assert 'question_type' in retyped.data['fields']
    assert reworded.status_code == 200
    assert list(mcq.options.values_list('id', flat=True)) == option_ids

    attempt = client_for(student).get(f'/api/attempts/{attempt_id}/')
    assert len(attempt.data['questions'][0]['options']) == 4


def test_bulk_upload_requires_question_text(client_for, make_assessment, instructor):
    assessment = make_assessment()
    csv_body = (
        "question_text,question_type,marks,options,correct_answer\n"
        " ,descriptive,1,,\n"
    )
    upload = SimpleUploadedFile('questions.csv', csv_body.encode('utf-8'), content_type='text/csv')

    response = client_for(instructor).post(
        '/api/questions/bulk-upload/', {'assessment_id': assessment.id, 'file': upload}, format='multipart'
    )

    assert response.status_code == 400
    assert 'question_text is required' in response.data['error']
    assert not assessment.questions.exists()
