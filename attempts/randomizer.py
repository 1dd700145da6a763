"""
Per-attempt shuffling of question and option order.

Orders are decided once when an attempt is created and stored on the
Submission; nothing here is called again on resume.
"""
import random

_seed_source = random.SystemRandom()


def new_seed():
    return _seed_source.getrandbits(63)


def shuffle(sequence, seed=None):
    """Return a shuffled copy of ``sequence`` (Fisher-Yates).

    The same seed always yields the same permutation.
    """
    rng = random.Random(seed)
    items = list(sequence)
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def freeze_order(assessment, questions, seed):
    """Decide the question and option order for a new attempt.

    ``questions`` must be in authoring order with options prefetched.
    Returns ``(question_ids, option_order)`` where option_order maps the
    question id (as a string, JSON keys) to its option ids.
    """
    rng = random.Random(seed)
    if assessment.randomize_questions:
        questions = shuffle(questions, rng.getrandbits(63))
    if assessment.questions_per_attempt:
        questions = questions[:assessment.questions_per_attempt]

    option_order = {}
    for question in questions:
        option_ids = [option.id for option in question.options.all()]
        if not option_ids:
            continue
        if assessment.randomize_options:
            option_ids = shuffle(option_ids, rng.getrandbits(63))
        option_order[str(question.id)] = option_ids

    return [question.id for question in questions], option_order
